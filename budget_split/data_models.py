"""Data models for the budget calculator.

This module defines dataclasses for everything the calculator consumes and
produces: bills and categories, the savings rule, couple settings, the full
``BudgetInput`` and the derived ``BudgetResult``. Saved plans are also
modelled here so the storage and web layers share one representation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

HOUSEHOLD_INDIVIDUAL = "individual"
HOUSEHOLD_COUPLE = "couple"
HOUSEHOLD_STUDENT = "student"
HOUSEHOLD_TYPES = (HOUSEHOLD_INDIVIDUAL, HOUSEHOLD_COUPLE, HOUSEHOLD_STUDENT)

SAVINGS_FIXED = "fixed"
SAVINGS_PERCENT = "percent"
SAVINGS_MODES = (SAVINGS_FIXED, SAVINGS_PERCENT)

SPLIT_EQUAL = "equal"
SPLIT_PROPORTIONAL = "proportional"
SPLIT_RULES = (SPLIT_EQUAL, SPLIT_PROPORTIONAL)


@dataclass
class Bill:
    """A recurring fixed monthly cost such as rent or internet."""

    id: str
    name: str
    amount: float


@dataclass
class Category:
    """A discretionary monthly budget.

    A category named ``"Buffer"`` (any letter case) is a reserve that is
    excluded from the weekly safe-to-spend figure.
    """

    id: str
    name: str
    amount: float


@dataclass
class SavingsRule:
    """How much to put aside each month.

    Attributes
    ----------
    mode: str
        ``"fixed"`` means ``value`` is a monetary amount. ``"percent"`` means
        ``value`` is a percentage (0-100) of total income.
    value: float
        The amount or percentage.
    """

    mode: str
    value: float


@dataclass
class CoupleSettings:
    split_rule: str = SPLIT_PROPORTIONAL  # 'equal' or 'proportional'


@dataclass
class BudgetInput:
    """Everything the user enters for one monthly plan.

    ``income_b`` and ``couple`` are only meaningful when ``household_type``
    is ``"couple"``; the engine ignores them otherwise.
    """

    household_type: str  # 'individual', 'couple' or 'student'
    income_a: float
    bills: List[Bill]
    categories: List[Category]
    savings: SavingsRule
    income_b: Optional[float] = None
    couple: Optional[CoupleSettings] = None

    @property
    def is_couple(self) -> bool:
        return self.household_type == HOUSEHOLD_COUPLE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "householdType": self.household_type,
            "incomeA": self.income_a,
        }
        if self.income_b is not None:
            data["incomeB"] = self.income_b
        data["bills"] = [{"id": b.id, "name": b.name, "amount": b.amount} for b in self.bills]
        data["categories"] = [
            {"id": c.id, "name": c.name, "amount": c.amount} for c in self.categories
        ]
        data["savings"] = {"mode": self.savings.mode, "value": self.savings.value}
        if self.couple is not None:
            data["couple"] = {"splitRule": self.couple.split_rule}
        return data


@dataclass
class CategoryResult:
    id: str
    name: str
    amount: Decimal  # normalized (non-negative, rounded) budget


@dataclass
class CoupleContribution:
    """One partner's fair share of the household bills."""

    person: str  # 'A' or 'B'
    income: Decimal
    income_share: Decimal  # 0..1, rounded to two decimals
    fair_bill_contribution: Decimal


@dataclass
class CoupleBreakdown:
    split_rule: str
    total_income_a: Decimal
    total_income_b: Decimal
    contributions: List[CoupleContribution]


@dataclass
class BudgetResult:
    """The monthly breakdown derived from a ``BudgetInput``.

    Every monetary field is a ``Decimal`` rounded to cents.
    ``remaining_after_bills_and_savings`` and ``unallocated`` may be negative;
    a negative ``unallocated`` means the categories are over-committed.
    """

    total_income: Decimal
    total_bills: Decimal
    savings_amount: Decimal
    total_category_budgets: Decimal
    remaining_after_bills_and_savings: Decimal
    unallocated: Decimal
    safe_to_spend_per_week: Decimal
    category_results: List[CategoryResult]
    couple: Optional[CoupleBreakdown] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "totalIncome": float(self.total_income),
            "totalBills": float(self.total_bills),
            "savingsAmount": float(self.savings_amount),
            "totalCategoryBudgets": float(self.total_category_budgets),
            "remainingAfterBillsAndSavings": float(self.remaining_after_bills_and_savings),
            "unallocated": float(self.unallocated),
            "safeToSpendPerWeek": float(self.safe_to_spend_per_week),
            "categoryResults": [
                {"id": c.id, "name": c.name, "amount": float(c.amount)}
                for c in self.category_results
            ],
            "warnings": list(self.warnings),
        }
        if self.couple is not None:
            data["couple"] = {
                "splitRule": self.couple.split_rule,
                "totalIncomeA": float(self.couple.total_income_a),
                "totalIncomeB": float(self.couple.total_income_b),
                "contributions": [
                    {
                        "person": c.person,
                        "income": float(c.income),
                        "incomeShare": float(c.income_share),
                        "fairBillContribution": float(c.fair_bill_contribution),
                    }
                    for c in self.couple.contributions
                ],
            }
        return data


@dataclass
class SavedPlan:
    """A named plan kept in the plan store.

    ``created_at`` is an ISO-8601 timestamp string.
    """

    id: str
    name: str
    created_at: str
    data: BudgetInput

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "data": self.data.to_dict(),
        }
