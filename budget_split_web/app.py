import logging
import os
from typing import Dict, List, Optional
from uuid import uuid4

from flask import Flask, redirect, render_template, request, session, url_for

from budget_split.config import configure_logging
from budget_split.data_models import (
    HOUSEHOLD_COUPLE,
    HOUSEHOLD_INDIVIDUAL,
    HOUSEHOLD_TYPES,
    SAVINGS_MODES,
    SPLIT_PROPORTIONAL,
    SPLIT_RULES,
    Bill,
    BudgetInput,
    Category,
    CoupleSettings,
    SavingsRule,
)
from budget_split.engine import calculate_budget
from budget_split.share import SHARE_QUERY_PARAM, InvalidShareData, decode_plan, encode_plan
from budget_split.storage import PLANS_KEY, KeyValueStorage, PlanStore, create_storage_from_env
from budget_split.templates import TEMPLATES, get_template, new_item_id
from budget_split.utils import parse_amount

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "This link is invalid or corrupted."
MISSING_LINK_MESSAGE = "This link is missing data. Ask the sender to copy the share link again."
FORM_FIELDS = (
    "household_type",
    "income_a",
    "income_b",
    "bills",
    "categories",
    "savings_mode",
    "savings_value",
    "split_rule",
)


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def parse_form_lines(value: str, kind: str) -> List[tuple]:
    """Parse ``Name: amount`` lines from a textarea.

    Blank lines are skipped. A line without a colon is a name with amount 0.
    Raises ``ValueError`` when an amount cannot be parsed.
    """
    items = []
    for line in (value or "").splitlines():
        line = line.strip()
        if not line:
            continue
        name, sep, amount = line.rpartition(":")
        if not sep:
            name, amount = line, ""
        try:
            items.append((name.strip(), parse_amount(amount)))
        except ValueError as exc:
            raise ValueError(f"{kind} '{name.strip()}' has an invalid amount: {amount.strip()}") from exc
    return items


def _format_amount(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _form_to_input(form) -> BudgetInput:
    household_type = form.get("household_type", HOUSEHOLD_INDIVIDUAL)
    if household_type not in HOUSEHOLD_TYPES:
        household_type = HOUSEHOLD_INDIVIDUAL
    savings_mode = form.get("savings_mode", "percent")
    if savings_mode not in SAVINGS_MODES:
        savings_mode = "percent"
    split_rule = form.get("split_rule", SPLIT_PROPORTIONAL)
    if split_rule not in SPLIT_RULES:
        split_rule = SPLIT_PROPORTIONAL

    is_couple = household_type == HOUSEHOLD_COUPLE
    try:
        income_a = parse_amount(form.get("income_a", ""))
        income_b = parse_amount(form.get("income_b", "")) if is_couple else None
        savings_value = parse_amount(form.get("savings_value", ""))
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {exc}") from exc

    return BudgetInput(
        household_type=household_type,
        income_a=income_a,
        income_b=income_b,
        bills=[Bill(id=new_item_id(), name=n, amount=a) for n, a in parse_form_lines(form.get("bills", ""), "Bill")],
        categories=[
            Category(id=new_item_id(), name=n, amount=a)
            for n, a in parse_form_lines(form.get("categories", ""), "Category")
        ],
        savings=SavingsRule(mode=savings_mode, value=savings_value),
        couple=CoupleSettings(split_rule=split_rule) if is_couple else None,
    )


def input_to_form(plan: BudgetInput) -> Dict[str, str]:
    """Flatten a plan into the string values the edit form expects."""
    return {
        "household_type": plan.household_type,
        "income_a": _format_amount(plan.income_a),
        "income_b": _format_amount(plan.income_b) if plan.income_b is not None else "",
        "bills": "\n".join(f"{b.name}: {_format_amount(b.amount)}" for b in plan.bills),
        "categories": "\n".join(f"{c.name}: {_format_amount(c.amount)}" for c in plan.categories),
        "savings_mode": plan.savings.mode,
        "savings_value": _format_amount(plan.savings.value),
        "split_rule": plan.couple.split_rule if plan.couple else SPLIT_PROPORTIONAL,
    }


def create_app(storage: Optional[KeyValueStorage] = None) -> Flask:
    """Build the web app.

    ``storage`` defaults to the SQL provider configured through
    ``BUDGET_SPLIT_DATABASE_URL``. Each browser session gets its own plan
    list, namespaced under the versioned plans key.
    """
    app = Flask(__name__)
    app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    plan_storage = storage if storage is not None else create_storage_from_env()

    def plan_store() -> PlanStore:
        return PlanStore(plan_storage, key=f"{PLANS_KEY}:{_ensure_user_token()}")

    def render_index(form_values: Dict[str, str], plan: Optional[BudgetInput], **extra):
        result = calculate_budget(plan) if plan is not None else None
        return render_template(
            "index.html",
            form=form_values,
            result=result,
            plans=plan_store().list_plans(),
            templates=sorted(TEMPLATES),
            household_types=HOUSEHOLD_TYPES,
            asset_version=app.config["ASSET_VERSION"],
            **extra,
        )

    @app.route("/", methods=["GET", "POST"])
    def index():
        if request.method == "GET":
            template_key = request.args.get("template", HOUSEHOLD_INDIVIDUAL)
            if template_key not in TEMPLATES:
                template_key = HOUSEHOLD_INDIVIDUAL
            plan = get_template(template_key)
            return render_index(input_to_form(plan), plan)

        action = request.form.get("action", "calculate")
        form_values = {key: request.form.get(key, "") for key in FORM_FIELDS}
        try:
            plan = _form_to_input(request.form)
        except ValueError as exc:
            return render_index(form_values, None, error=str(exc))

        message = None
        share_url = None
        if action == "save_plan":
            saved = plan_store().create_plan(request.form.get("plan_name", ""), plan)
            message = f"Saved plan '{saved.name}'."
        elif action == "share":
            share_url = url_for("share", _external=True, **{SHARE_QUERY_PARAM: encode_plan(plan)})
        return render_index(form_values, plan, message=message, share_url=share_url)

    @app.get("/plans/<plan_id>")
    def load_plan(plan_id: str):
        saved = plan_store().get_plan(plan_id)
        if saved is None:
            return redirect(url_for("index"))
        return render_index(input_to_form(saved.data), saved.data, message=f"Loaded plan '{saved.name}'.")

    @app.post("/plans/remove")
    def remove_plan():
        plan_id = request.form.get("plan_id", "")
        plan_store().remove_plan(plan_id)
        return redirect(url_for("index"))

    @app.get("/share")
    def share():
        def rejected(message: str):
            return (
                render_template(
                    "share.html",
                    error=message,
                    plan=None,
                    result=None,
                    asset_version=app.config["ASSET_VERSION"],
                ),
                400,
            )

        token = request.args.get(SHARE_QUERY_PARAM, "")
        if not token.strip():
            return rejected(MISSING_LINK_MESSAGE)
        try:
            plan = decode_plan(token)
        except InvalidShareData as exc:
            logger.info("Rejected share link: %s", exc)
            return rejected(INVALID_LINK_MESSAGE)
        return render_template(
            "share.html",
            error=None,
            plan=plan,
            result=calculate_budget(plan),
            form=input_to_form(plan),
            asset_version=app.config["ASSET_VERSION"],
        )

    return app


if __name__ == "__main__":
    configure_logging()
    print("Starting budget web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
