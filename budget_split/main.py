"""Command-line interface for the budget calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can calculate a monthly breakdown, produce and open share
links, start from a template and keep named plans in a local database.
Results can be printed to the terminal or exported to JSON.
"""

from __future__ import annotations

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import click

from .config import configure_logging, share_base_url
from .data_models import (
    HOUSEHOLD_COUPLE,
    HOUSEHOLD_TYPES,
    SAVINGS_MODES,
    SPLIT_RULES,
    Bill,
    BudgetInput,
    Category,
    CoupleSettings,
    SavingsRule,
)
from .engine import calculate_budget
from .formatter import print_plans, print_result
from .share import SHARE_QUERY_PARAM, InvalidShareData, build_share_url, decode_plan, encode_plan
from .storage import PlanStore, create_storage_from_env
from .templates import TEMPLATES, get_template, new_item_id
from .utils import parse_amount

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "This link is invalid or corrupted."


def parse_amount_option(value: str) -> float:
    try:
        return parse_amount(value)
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_item_strings(values: Tuple[str, ...], kind: str) -> List[Tuple[str, float]]:
    """Parse ``NAME:AMOUNT`` strings. The name may itself contain colons."""
    items: List[Tuple[str, float]] = []
    for item in values:
        name, sep, amount = item.rpartition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"{kind} must be in NAME:AMOUNT format; got {item}")
        items.append((name.strip(), parse_amount_option(amount)))
    return items


def parse_savings_string(value: str) -> SavingsRule:
    """Parse a ``MODE:VALUE`` savings option, e.g. ``percent:20``."""
    mode, sep, amount = value.partition(":")
    mode = mode.strip().lower()
    if not sep or mode not in SAVINGS_MODES:
        raise click.BadParameter(
            f"Savings must be in MODE:VALUE format with mode 'fixed' or 'percent'; got {value}"
        )
    return SavingsRule(mode=mode, value=parse_amount_option(amount))


def build_input_from_options(
    household: Optional[str],
    income_a: Optional[str],
    income_b: Optional[str],
    bill: Tuple[str, ...],
    category: Tuple[str, ...],
    savings: Optional[str],
    split_rule: Optional[str],
    template: Optional[str] = None,
) -> BudgetInput:
    """Assemble a ``BudgetInput`` from CLI options.

    When ``template`` is given it provides the starting point and every other
    option that was supplied overrides the matching template field. Bills
    and categories given on the command line replace the template's lists.
    """
    if template:
        plan = get_template(template)
    else:
        plan = BudgetInput(
            household_type="individual",
            income_a=0,
            bills=[],
            categories=[],
            savings=SavingsRule(mode="fixed", value=0),
        )
    if household:
        plan.household_type = household
    if income_a is not None:
        plan.income_a = parse_amount_option(income_a)
    if income_b is not None:
        plan.income_b = parse_amount_option(income_b)
    if bill:
        plan.bills = [Bill(id=new_item_id(), name=n, amount=a) for n, a in parse_item_strings(bill, "Bill")]
    if category:
        plan.categories = [
            Category(id=new_item_id(), name=n, amount=a) for n, a in parse_item_strings(category, "Category")
        ]
    if savings:
        plan.savings = parse_savings_string(savings)
    if plan.household_type == HOUSEHOLD_COUPLE:
        if split_rule:
            plan.couple = CoupleSettings(split_rule=split_rule)
        elif plan.couple is None:
            plan.couple = CoupleSettings()
    else:
        plan.income_b = None
        plan.couple = None
    return plan


def plan_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options that describe a plan to a command."""
    options = [
        click.option("--template", "template", type=click.Choice(sorted(TEMPLATES)), help="Start from a template"),
        click.option("--household", "household", type=click.Choice(HOUSEHOLD_TYPES), help="Household type"),
        click.option("--income-a", "-a", "income_a", help="Monthly income of the main earner"),
        click.option("--income-b", "-b", "income_b", help="Monthly income of the partner (couple only)"),
        click.option("--bill", "bill", multiple=True, help="Bill in NAME:AMOUNT format"),
        click.option("--category", "category", multiple=True, help="Category budget in NAME:AMOUNT format"),
        click.option("--savings", "savings", help="Savings in MODE:VALUE format, e.g. percent:20 or fixed:500"),
        click.option("--split-rule", "split_rule", type=click.Choice(SPLIT_RULES), help="Couple bill split rule"),
    ]
    for option in reversed(options):
        func = option(func)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        kwargs["plan"] = build_input_from_options(
            kwargs.pop("household"),
            kwargs.pop("income_a"),
            kwargs.pop("income_b"),
            kwargs.pop("bill"),
            kwargs.pop("category"),
            kwargs.pop("savings"),
            kwargs.pop("split_rule"),
            kwargs.pop("template"),
        )
        return func(*args, **kwargs)

    return wrapper


def export_to_json(path: Path, plan: BudgetInput) -> None:
    """Export the plan and its breakdown to a JSON file."""
    data = {"input": plan.to_dict(), "result": calculate_budget(plan).to_dict()}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def token_from_link(link: str) -> str:
    """Accept either a bare token or a full share URL."""
    if "://" not in link:
        return link
    values = parse_qs(urlparse(link).query).get(SHARE_QUERY_PARAM)
    return values[0] if values else ""


@click.group()
@click.option("--log-level", "log_level", default=None, help="Logging level (default from BUDGET_SPLIT_LOG_LEVEL)")
def cli(log_level: Optional[str]) -> None:
    """A monthly household budget calculator."""
    configure_logging(log_level)


@cli.command()
@plan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def calculate(plan: BudgetInput, output: Optional[str]) -> None:
    """Compute and print the monthly breakdown."""
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Unsupported output format; use .json")
        export_to_json(path, plan)
        click.echo(f"Budget exported to {path}")
    else:
        print_result(calculate_budget(plan))


@cli.command()
@plan_options
@click.option("--url/--token", "as_url", default=True, help="Print a full link or only the token")
@click.option("--base-url", "base_url", default=None, help="Base URL for the link (default from BUDGET_SPLIT_BASE_URL)")
def share(plan: BudgetInput, as_url: bool, base_url: Optional[str]) -> None:
    """Print a shareable link for a plan."""
    try:
        if as_url:
            click.echo(build_share_url(base_url or share_base_url(), plan))
        else:
            click.echo(encode_plan(plan))
    except InvalidShareData as exc:
        raise click.BadParameter(str(exc))


@cli.command(name="open")
@click.argument("link")
@click.option("--json", "as_json", is_flag=True, help="Print the decoded plan and result as JSON")
def open_link(link: str, as_json: bool) -> None:
    """Decode a share link (or bare token) and print its breakdown."""
    try:
        plan = decode_plan(token_from_link(link))
    except InvalidShareData as exc:
        logger.info("Could not open share link: %s", exc)
        click.echo(INVALID_LINK_MESSAGE, err=True)
        sys.exit(1)
    result = calculate_budget(plan)
    if as_json:
        click.echo(json.dumps({"input": plan.to_dict(), "result": result.to_dict()}, indent=2, ensure_ascii=False))
    else:
        print_result(result)


@cli.command(name="templates")
def list_templates() -> None:
    """List the available starter templates."""
    for key in sorted(TEMPLATES):
        click.echo(key)


@cli.group()
@click.option("--database-url", "database_url", default=None, help="SQLAlchemy URL (default from BUDGET_SPLIT_DATABASE_URL)")
@click.pass_context
def plans(ctx: click.Context, database_url: Optional[str]) -> None:
    """Manage saved plans."""
    ctx.obj = PlanStore(create_storage_from_env(database_url))


@plans.command(name="list")
@click.pass_obj
def list_plans(store: PlanStore) -> None:
    """List saved plans, newest first."""
    print_plans(store.list_plans())


@plans.command(name="save")
@click.argument("name")
@plan_options
@click.pass_obj
def save_plan(store: PlanStore, name: str, plan: BudgetInput) -> None:
    """Save a plan under NAME."""
    saved = store.create_plan(name, plan)
    click.echo(f"Saved plan {saved.name} ({saved.id})")


@plans.command(name="show")
@click.argument("plan_id")
@click.pass_obj
def show_plan(store: PlanStore, plan_id: str) -> None:
    """Print the breakdown of a saved plan."""
    saved = store.get_plan(plan_id)
    if saved is None:
        raise click.BadParameter(f"No saved plan with id {plan_id}")
    click.echo(f"{saved.name} (saved {saved.created_at})")
    print_result(calculate_budget(saved.data))


@plans.command(name="remove")
@click.argument("plan_id")
@click.pass_obj
def remove_plan(store: PlanStore, plan_id: str) -> None:
    """Remove a saved plan by id."""
    before = len(store.list_plans())
    remaining = store.remove_plan(plan_id)
    if len(remaining) == before:
        click.echo(f"No saved plan with id {plan_id}")
    else:
        click.echo(f"Removed plan {plan_id}")


if __name__ == "__main__":
    cli()
