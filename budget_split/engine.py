"""Core calculation engine for the budget calculator.

This module turns a ``BudgetInput`` into a ``BudgetResult``: total income,
bills, savings, category budgets, what is left over, a weekly safe-to-spend
figure and, for couples, a fair split of the bills. The calculation is pure:
it never mutates its input, performs no I/O and never raises. Untrusted
amounts (negative, missing, NaN or infinite) are normalized before use.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from .data_models import (
    SAVINGS_FIXED,
    SPLIT_EQUAL,
    SPLIT_PROPORTIONAL,
    BudgetInput,
    BudgetResult,
    Category,
    CategoryResult,
    CoupleBreakdown,
    CoupleContribution,
)
from .utils import ZERO, clamp, non_negative, round2, to_money

# Conventional 52 / 12 approximation.
WEEKS_PER_MONTH = Decimal("4.33")

BUFFER_CATEGORY_NAME = "buffer"
HALF = Decimal("0.5")
HUNDRED = Decimal("100")

WARNING_NO_INCOME = "Income is 0. Add income to calculate a plan."
WARNING_BILLS_EXCEED_INCOME = "Bills exceed income. You're in a deficit before savings/categories."
WARNING_NEGATIVE_REMAINING = "After bills and savings, you have negative remaining."
WARNING_CATEGORIES_OVERCOMMITTED = "Your category budgets exceed what's available after bills and savings."
WARNING_COUPLE_NO_INCOME = "Both incomes are 0 for couple mode."


def compute_savings(total_income: Decimal, mode: str, value: object) -> Decimal:
    """Return the monthly savings amount.

    ``"fixed"`` uses ``value`` as an amount floored at zero. Any other mode
    is treated as ``"percent"``: ``value`` is clamped to 0-100 and applied to
    ``total_income``.
    """
    amount = to_money(value)
    if mode == SAVINGS_FIXED:
        return max(ZERO, amount)
    pct = clamp(amount, ZERO, HUNDRED)
    return round2(total_income * pct / HUNDRED)


def is_buffer_category(category: Category) -> bool:
    """Return True when a category is the buffer reserve.

    A category is the buffer when its name, compared case-insensitively,
    is exactly ``"buffer"``. Surrounding whitespace is significant.
    """
    return isinstance(category.name, str) and category.name.lower() == BUFFER_CATEGORY_NAME


def find_buffer_amount(categories: List[Category]) -> Decimal:
    """Return the normalized amount of the first buffer category, or 0."""
    for category in categories:
        if is_buffer_category(category):
            return non_negative(category.amount)
    return ZERO


def compute_couple_split(
    split_rule: str, income_a: Decimal, income_b: Decimal, total_bills: Decimal
) -> CoupleBreakdown:
    """Split the household bills between partners A and B.

    With the ``"equal"`` rule each partner pays half regardless of income.
    Any other rule is proportional to income; when both incomes are zero the
    proportional rule falls back to an even split. Shares and contributions
    are rounded independently, so they may not add up to exactly 100 % or
    to ``total_bills``.
    """
    if split_rule == SPLIT_EQUAL:
        share_a = share_b = HALF
    else:
        split_rule = SPLIT_PROPORTIONAL
        denom = income_a + income_b
        if denom > 0:
            share_a = income_a / denom
            share_b = income_b / denom
        else:
            share_a = share_b = HALF

    contributions = [
        CoupleContribution(
            person="A",
            income=round2(income_a),
            income_share=round2(share_a),
            fair_bill_contribution=round2(total_bills * share_a),
        ),
        CoupleContribution(
            person="B",
            income=round2(income_b),
            income_share=round2(share_b),
            fair_bill_contribution=round2(total_bills * share_b),
        ),
    ]
    return CoupleBreakdown(
        split_rule=split_rule,
        total_income_a=round2(income_a),
        total_income_b=round2(income_b),
        contributions=contributions,
    )


def calculate_budget(budget: BudgetInput) -> BudgetResult:
    """Compute the monthly breakdown for a plan.

    Parameters
    ----------
    budget: BudgetInput
        The plan to evaluate. It is never modified.

    Returns
    -------
    BudgetResult
        A freshly built result. Advisory messages are collected in
        ``warnings`` in a fixed order; the function itself never fails.
    """
    warnings: List[str] = []
    is_couple = budget.is_couple

    income_a = non_negative(budget.income_a)
    income_b = non_negative(budget.income_b)
    total_income = income_a + (income_b if is_couple else ZERO)

    total_bills = sum((non_negative(b.amount) for b in budget.bills), ZERO)
    savings = budget.savings
    savings_amount = compute_savings(
        total_income,
        getattr(savings, "mode", None),
        getattr(savings, "value", None),
    )
    remaining = round2(total_income - total_bills - savings_amount)

    category_amounts = [non_negative(c.amount) for c in budget.categories]
    total_category_budgets = sum(category_amounts, ZERO)
    unallocated = round2(remaining - total_category_budgets)

    buffer_amount = find_buffer_amount(budget.categories)
    safe_to_spend_per_week = round2((remaining - buffer_amount) / WEEKS_PER_MONTH)

    if total_income <= 0:
        warnings.append(WARNING_NO_INCOME)
    if total_bills > total_income:
        warnings.append(WARNING_BILLS_EXCEED_INCOME)
    if remaining < 0:
        warnings.append(WARNING_NEGATIVE_REMAINING)
    if unallocated < 0:
        warnings.append(WARNING_CATEGORIES_OVERCOMMITTED)

    couple: Optional[CoupleBreakdown] = None
    if is_couple:
        split_rule = budget.couple.split_rule if budget.couple is not None else SPLIT_PROPORTIONAL
        couple = compute_couple_split(split_rule, income_a, income_b, total_bills)
        if income_a == 0 and income_b == 0:
            warnings.append(WARNING_COUPLE_NO_INCOME)

    category_results = [
        CategoryResult(id=c.id, name=c.name, amount=round2(amount))
        for c, amount in zip(budget.categories, category_amounts)
    ]

    return BudgetResult(
        total_income=round2(total_income),
        total_bills=round2(total_bills),
        savings_amount=round2(savings_amount),
        total_category_budgets=round2(total_category_budgets),
        remaining_after_bills_and_savings=remaining,
        unallocated=unallocated,
        safe_to_spend_per_week=safe_to_spend_per_week,
        category_results=category_results,
        couple=couple,
        warnings=warnings,
    )
