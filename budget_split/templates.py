"""Starter plans.

Each template returns a fresh ``BudgetInput`` with newly generated item ids,
so editing one copy never affects another.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple
from uuid import uuid4

from .data_models import (
    HOUSEHOLD_COUPLE,
    HOUSEHOLD_INDIVIDUAL,
    HOUSEHOLD_STUDENT,
    SAVINGS_FIXED,
    SAVINGS_PERCENT,
    SPLIT_PROPORTIONAL,
    Bill,
    BudgetInput,
    Category,
    CoupleSettings,
    SavingsRule,
)


def new_item_id() -> str:
    return uuid4().hex[:8]


def _bills(items: List[Tuple[str, float]]) -> List[Bill]:
    return [Bill(id=new_item_id(), name=name, amount=amount) for name, amount in items]


def _categories(items: List[Tuple[str, float]]) -> List[Category]:
    return [Category(id=new_item_id(), name=name, amount=amount) for name, amount in items]


def individual_template() -> BudgetInput:
    return BudgetInput(
        household_type=HOUSEHOLD_INDIVIDUAL,
        income_a=32000,
        bills=_bills(
            [
                ("Rent/Mortgage", 12000),
                ("Electricity/Heating", 900),
                ("Internet", 399),
                ("Phone", 300),
                ("Subscriptions", 200),
            ]
        ),
        savings=SavingsRule(mode=SAVINGS_PERCENT, value=15),
        categories=_categories([("Food", 4500), ("Transport", 900), ("Fun", 1500), ("Buffer", 1500)]),
    )


def couple_template() -> BudgetInput:
    return BudgetInput(
        household_type=HOUSEHOLD_COUPLE,
        income_a=28000,
        income_b=24000,
        bills=_bills(
            [
                ("Rent/Mortgage", 15000),
                ("Electricity/Heating", 1200),
                ("Internet", 399),
                ("Insurance", 500),
                ("Phone (shared)", 0),
            ]
        ),
        savings=SavingsRule(mode=SAVINGS_PERCENT, value=20),
        categories=_categories([("Food", 6500), ("Transport", 1800), ("Fun", 2500), ("Buffer", 2500)]),
        couple=CoupleSettings(split_rule=SPLIT_PROPORTIONAL),
    )


def student_template() -> BudgetInput:
    return BudgetInput(
        household_type=HOUSEHOLD_STUDENT,
        income_a=13000,
        bills=_bills([("Rent", 6500), ("Internet", 299), ("Phone", 250)]),
        savings=SavingsRule(mode=SAVINGS_FIXED, value=300),
        categories=_categories([("Food", 2500), ("Transport", 450), ("Fun", 700), ("Buffer", 500)]),
    )


def aggressive_template() -> BudgetInput:
    """High savings rate with lean categories."""
    return BudgetInput(
        household_type=HOUSEHOLD_INDIVIDUAL,
        income_a=35000,
        bills=_bills([("Rent", 12000), ("Utilities", 1500)]),
        savings=SavingsRule(mode=SAVINGS_PERCENT, value=30),
        categories=_categories([("Food", 4000), ("Transport", 800), ("Fun", 800), ("Buffer", 2000)]),
    )


def low_income_template() -> BudgetInput:
    return BudgetInput(
        household_type=HOUSEHOLD_INDIVIDUAL,
        income_a=15000,
        bills=_bills([("Rent", 7000), ("Utilities", 1200)]),
        savings=SavingsRule(mode=SAVINGS_FIXED, value=500),
        categories=_categories([("Food", 2500), ("Transport", 600), ("Fun", 400), ("Buffer", 500)]),
    )


TEMPLATES: Dict[str, Callable[[], BudgetInput]] = {
    "individual": individual_template,
    "couple": couple_template,
    "student": student_template,
    "aggressive": aggressive_template,
    "lowincome": low_income_template,
}


def get_template(key: str) -> BudgetInput:
    """Return a fresh plan for ``key``. Raises ``KeyError`` for unknown keys."""
    try:
        factory = TEMPLATES[key]
    except KeyError:
        raise KeyError(f"Unknown template: {key}") from None
    return factory()
