"""Output helpers for the budget calculator.

This module renders a ``BudgetResult`` and lists of saved plans in a simple
text format for the terminal. It relies only on built-in printing and
string formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import BudgetResult, SavedPlan


def print_result(result: BudgetResult) -> None:
    """Print a monthly breakdown in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Total income             : {result.total_income:.2f}")
    print(f"Bills                    : {result.total_bills:.2f}")
    print(f"Savings                  : {result.savings_amount:.2f}")
    print(f"Remaining after the above: {result.remaining_after_bills_and_savings:.2f}")
    print(f"Category budgets         : {result.total_category_budgets:.2f}")
    print(f"Unallocated              : {result.unallocated:.2f}")
    print(f"Safe to spend per week   : {result.safe_to_spend_per_week:.2f}")
    print("-" * 72)

    if result.category_results:
        print("Categories")
        for category in result.category_results:
            print(f"  {category.name:30s} {category.amount:12.2f}")
        print("-" * 72)

    if result.couple:
        print(f"Bill split ({result.couple.split_rule})")
        print(f"  {'Person':8s} {'Income':>12s} {'Share':>8s} {'Fair bills':>12s}")
        for row in result.couple.contributions:
            print(
                f"  {row.person:8s} {row.income:12.2f} {row.income_share * 100:7.0f}% "
                f"{row.fair_bill_contribution:12.2f}"
            )
        print("-" * 72)

    for warning in result.warnings:
        print(f"Warning: {warning}")


def print_plans(plans: Iterable[SavedPlan]) -> None:
    """Print saved plans, one per line, newest first."""
    rows = list(plans)
    if not rows:
        print("No saved plans.")
        return
    print(f"{'Id':34s} {'Created':26s} Name")
    for plan in rows:
        print(f"{plan.id:34s} {plan.created_at[:25]:26s} {plan.name}")
