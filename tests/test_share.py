import base64
import json

import pytest

from budget_split.data_models import Bill, BudgetInput, Category, CoupleSettings, SavingsRule
from budget_split.engine import calculate_budget
from budget_split.share import InvalidShareData, build_share_url, decode_plan, encode_plan, parse_budget_input
from budget_split.templates import TEMPLATES, get_template


def _token(payload: str) -> str:
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").replace("=", ".")


HUGE_INT = "1" + "0" * 400
DEEPLY_NESTED = "[" * 100000 + "]" * 100000


def _valid_dict():
    return {
        "householdType": "couple",
        "incomeA": 28000,
        "incomeB": 24000,
        "bills": [{"id": "b1", "name": "Rent", "amount": 15000}],
        "categories": [{"id": "c1", "name": "Buffer", "amount": 2500.5}],
        "savings": {"mode": "percent", "value": 20},
        "couple": {"splitRule": "equal"},
    }


@pytest.mark.parametrize("key", sorted(TEMPLATES))
def test_templates_round_trip(key):
    plan = get_template(key)
    decoded = decode_plan(encode_plan(plan))
    assert decoded == plan
    assert calculate_budget(decoded) == calculate_budget(plan)


def test_unicode_names_and_empty_lists_round_trip():
    plan = BudgetInput(
        household_type="student",
        income_a=13000.5,
        bills=[Bill(id="ä1", name="Hyra 🏠", amount=6500)],
        categories=[],
        savings=SavingsRule(mode="fixed", value=0),
    )
    assert decode_plan(encode_plan(plan)) == plan

    empty = BudgetInput(
        household_type="individual",
        income_a=0,
        bills=[],
        categories=[],
        savings=SavingsRule(mode="percent", value=0),
    )
    assert decode_plan(encode_plan(empty)) == empty


def test_token_is_url_safe():
    plan = get_template("couple")
    plan.bills[0].name = "??>>~~" * 7
    token = encode_plan(plan)
    assert not set(token) & set("+/= ")


def test_optional_fields_are_omitted():
    plan = get_template("individual")
    data = json.loads(base64.urlsafe_b64decode(encode_plan(plan).replace(".", "=")))
    assert "incomeB" not in data
    assert "couple" not in data


def test_parse_valid_dict():
    plan = parse_budget_input(_valid_dict())
    assert plan.couple == CoupleSettings(split_rule="equal")
    assert plan.categories == [Category(id="c1", name="Buffer", amount=2500.5)]


@pytest.mark.parametrize(
    "token",
    [
        "",
        "   ",
        "not a token!!",
        "%%%%",
        _token("not json"),
        _token("[1, 2, 3]"),
        "e30.",
        "ééé",
        pytest.param(_token(DEEPLY_NESTED), id="deeply-nested"),
    ],
)
def test_garbage_tokens_are_rejected(token):
    with pytest.raises(InvalidShareData):
        decode_plan(token)


def test_truncated_token_is_rejected():
    token = encode_plan(get_template("couple"))
    with pytest.raises(InvalidShareData):
        decode_plan(token[: len(token) // 2])


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("savings"),
        lambda d: d.pop("bills"),
        lambda d: d.update(householdType="family"),
        lambda d: d.update(incomeA="28000"),
        lambda d: d.update(incomeA=True),
        lambda d: d["savings"].update(mode="weekly"),
        lambda d: d["couple"].update(splitRule="half"),
        lambda d: d["bills"][0].pop("id"),
        lambda d: d["bills"].append("Rent"),
        lambda d: d["categories"][0].update(amount=None),
    ],
)
def test_structurally_invalid_plans_are_rejected(mutate):
    data = _valid_dict()
    mutate(data)
    with pytest.raises(InvalidShareData):
        decode_plan(_token(json.dumps(data)))


def test_non_finite_numbers_are_rejected():
    payload = json.dumps(_valid_dict()).replace("28000", "NaN", 1)
    with pytest.raises(InvalidShareData):
        decode_plan(_token(payload))
    overflow = json.dumps(_valid_dict()).replace("28000", "1e400", 1)
    with pytest.raises(InvalidShareData):
        decode_plan(_token(overflow))


def test_integer_too_large_for_a_float_is_rejected():
    for field in ("28000", "15000", "2500.5"):
        payload = json.dumps(_valid_dict()).replace(field, HUGE_INT, 1)
        with pytest.raises(InvalidShareData, match="must be finite"):
            decode_plan(_token(payload))


def test_negative_amounts_decode_and_engine_normalizes_them():
    data = _valid_dict()
    data["bills"][0]["amount"] = -15000
    plan = decode_plan(_token(json.dumps(data)))
    assert plan.bills[0].amount == -15000
    assert calculate_budget(plan).total_bills == 0


def test_encoding_non_finite_plan_fails_cleanly():
    plan = get_template("individual")
    plan.income_a = float("nan")
    with pytest.raises(InvalidShareData):
        encode_plan(plan)


def test_build_share_url():
    plan = get_template("student")
    url = build_share_url("https://example.org/share", plan)
    assert url.startswith("https://example.org/share?data=")
    token = url.split("data=", 1)[1]
    assert decode_plan(token) == plan
    assert build_share_url("https://example.org/share?lang=sv", plan).startswith("https://example.org/share?lang=sv&data=")
