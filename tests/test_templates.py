from decimal import Decimal

import pytest

from budget_split.engine import calculate_budget
from budget_split.templates import TEMPLATES, get_template


def test_template_keys():
    assert sorted(TEMPLATES) == ["aggressive", "couple", "individual", "lowincome", "student"]


def test_individual_template_breakdown():
    result = calculate_budget(get_template("individual"))
    assert result.total_income == Decimal("32000")
    assert result.total_bills == Decimal("13799")
    assert result.savings_amount == Decimal("4800")
    assert result.remaining_after_bills_and_savings == Decimal("13401")
    assert result.total_category_budgets == Decimal("8400")
    assert result.unallocated == Decimal("5001")
    assert result.safe_to_spend_per_week == Decimal("2748.50")
    assert result.warnings == []


def test_couple_template_splits_bills_by_income():
    result = calculate_budget(get_template("couple"))
    assert result.total_income == Decimal("52000")
    assert result.total_bills == Decimal("17099")
    a, b = result.couple.contributions
    assert (a.income_share, b.income_share) == (Decimal("0.54"), Decimal("0.46"))
    assert (a.fair_bill_contribution, b.fair_bill_contribution) == (Decimal("9207.15"), Decimal("7891.85"))


@pytest.mark.parametrize("key", sorted(TEMPLATES))
def test_every_template_is_a_balanced_plan(key):
    result = calculate_budget(get_template(key))
    assert result.warnings == []
    assert result.unallocated >= 0


def test_templates_are_fresh_copies():
    first = get_template("student")
    second = get_template("student")
    first.bills[0].amount = 1
    assert second.bills[0].amount == 6500
    assert {b.id for b in first.bills}.isdisjoint({b.id for b in second.bills})


def test_unknown_template():
    with pytest.raises(KeyError):
        get_template("family")
