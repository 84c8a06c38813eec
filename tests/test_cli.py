import json

from click.testing import CliRunner

from budget_split.main import build_input_from_options, cli, token_from_link
from budget_split.share import decode_plan, encode_plan
from budget_split.templates import get_template

COUPLE_ARGS = [
    "--household", "couple",
    "--income-a", "30k",
    "--income-b", "10,000",
    "--bill", "Rent:4000",
    "--category", "Food:2000",
    "--category", "Buffer:1000",
    "--savings", "percent:10",
]


def test_build_input_from_options_overrides_template():
    plan = build_input_from_options("individual", "40k", None, ("Rent: Big flat:9000",), (), None, None, "couple")
    assert plan.household_type == "individual"
    assert plan.income_a == 40000
    assert plan.income_b is None
    assert plan.couple is None
    assert [(b.name, b.amount) for b in plan.bills] == [("Rent: Big flat", 9000)]
    assert [c.name for c in plan.categories] == [c.name for c in get_template("couple").categories]


def test_couple_defaults_to_proportional_split():
    plan = build_input_from_options("couple", "1", "1", (), (), None, None)
    assert plan.couple.split_rule == "proportional"


def test_token_from_link():
    assert token_from_link("abc") == "abc"
    assert token_from_link("https://example.org/share?data=abc&x=1") == "abc"
    assert token_from_link("https://example.org/share") == ""


def test_calculate_prints_breakdown():
    result = CliRunner().invoke(cli, ["calculate", *COUPLE_ARGS])
    assert result.exit_code == 0, result.output
    assert "Total income             : 40000.00" in result.output
    assert "Bill split (proportional)" in result.output
    assert "3000.00" in result.output


def test_calculate_with_template_and_warning():
    result = CliRunner().invoke(cli, ["calculate", "--template", "student", "--income-a", "0"])
    assert result.exit_code == 0, result.output
    assert "Warning: Income is 0." in result.output


def test_calculate_exports_json(tmp_path):
    target = tmp_path / "budget.json"
    result = CliRunner().invoke(cli, ["calculate", *COUPLE_ARGS, "--output", str(target)])
    assert result.exit_code == 0, result.output
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["input"]["householdType"] == "couple"
    assert data["result"]["totalIncome"] == 40000.0
    assert data["result"]["couple"]["contributions"][1]["fairBillContribution"] == 1000.0


def test_calculate_rejects_bad_options(tmp_path):
    runner = CliRunner()
    assert runner.invoke(cli, ["calculate", "--bill", "Rent"]).exit_code == 2
    assert runner.invoke(cli, ["calculate", "--income-a", "lots"]).exit_code == 2
    assert runner.invoke(cli, ["calculate", "--savings", "monthly:5"]).exit_code == 2
    assert runner.invoke(cli, ["calculate", "--output", str(tmp_path / "out.csv")]).exit_code == 2


def test_share_then_open_round_trip():
    runner = CliRunner()
    shared = runner.invoke(cli, ["share", *COUPLE_ARGS, "--base-url", "https://example.org/share"])
    assert shared.exit_code == 0, shared.output
    link = shared.output.strip()
    assert link.startswith("https://example.org/share?data=")

    opened = runner.invoke(cli, ["open", "--json", link])
    assert opened.exit_code == 0, opened.output
    data = json.loads(opened.output)
    assert data["input"]["incomeB"] == 10000
    assert data["result"]["safeToSpendPerWeek"] == 7159.35


def test_share_token_only():
    result = CliRunner().invoke(cli, ["share", "--template", "student", "--token"])
    assert result.exit_code == 0, result.output
    assert decode_plan(result.output.strip()).household_type == "student"


def test_open_invalid_link_fails_cleanly():
    result = CliRunner().invoke(cli, ["open", "definitely-not-a-plan"])
    assert result.exit_code == 1
    assert "This link is invalid or corrupted." in result.output


def test_open_rejects_number_too_large_for_a_float():
    plan = get_template("individual")
    plan.income_a = 10 ** 400
    result = CliRunner().invoke(cli, ["open", encode_plan(plan)])
    assert result.exit_code == 1
    assert "This link is invalid or corrupted." in result.output


def test_open_prints_breakdown():
    result = CliRunner().invoke(cli, ["open", encode_plan(get_template("individual"))])
    assert result.exit_code == 0, result.output
    assert "Safe to spend per week   : 2748.50" in result.output


def test_templates_command_lists_keys():
    result = CliRunner().invoke(cli, ["templates"])
    assert result.output.split() == ["aggressive", "couple", "individual", "lowincome", "student"]


def test_plans_lifecycle(tmp_path):
    runner = CliRunner()
    db = ["plans", "--database-url", f"sqlite:///{tmp_path / 'plans.sqlite3'}"]

    assert "No saved plans." in runner.invoke(cli, [*db, "list"]).output

    saved = runner.invoke(cli, [*db, "save", "Our home", *COUPLE_ARGS])
    assert saved.exit_code == 0, saved.output
    plan_id = saved.output.strip().rsplit("(", 1)[1].rstrip(")")

    listed = runner.invoke(cli, [*db, "list"])
    assert plan_id in listed.output
    assert "Our home" in listed.output

    shown = runner.invoke(cli, [*db, "show", plan_id])
    assert shown.exit_code == 0, shown.output
    assert "Our home" in shown.output
    assert "Bill split (proportional)" in shown.output

    assert runner.invoke(cli, [*db, "show", "missing"]).exit_code == 2

    removed = runner.invoke(cli, [*db, "remove", plan_id])
    assert f"Removed plan {plan_id}" in removed.output
    assert "No saved plan with id" in runner.invoke(cli, [*db, "remove", plan_id]).output
    assert "No saved plans." in runner.invoke(cli, [*db, "list"]).output
