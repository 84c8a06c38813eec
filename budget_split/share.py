"""Shareable plan links.

A plan is serialized to JSON, encoded as UTF-8 and wrapped in URL-safe
base64 (with ``=`` padding swapped for ``.`` so the token survives query
strings untouched). Decoding is strict: anything that does not describe a
complete, well-typed ``BudgetInput`` raises ``InvalidShareData``.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import math
from typing import Any, Dict, List
from urllib.parse import urlencode

from .data_models import (
    HOUSEHOLD_TYPES,
    SAVINGS_MODES,
    SPLIT_RULES,
    Bill,
    BudgetInput,
    Category,
    CoupleSettings,
    SavingsRule,
)

logger = logging.getLogger(__name__)

SHARE_QUERY_PARAM = "data"


class InvalidShareData(ValueError):
    """Raised when an encoded plan is malformed, truncated or tampered with."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidShareData(message)


def _parse_number(value: Any, field_name: str) -> float:
    _require(
        isinstance(value, (int, float)) and not isinstance(value, bool),
        f"{field_name} must be a number",
    )
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    _require(finite, f"{field_name} must be finite")
    return value


def _parse_items(raw: Any, field_name: str) -> List[Dict[str, Any]]:
    _require(isinstance(raw, list), f"{field_name} must be a list")
    items = []
    for index, item in enumerate(raw):
        label = f"{field_name}[{index}]"
        _require(isinstance(item, dict), f"{label} must be an object")
        _require(isinstance(item.get("id"), str), f"{label}.id must be a string")
        _require(isinstance(item.get("name"), str), f"{label}.name must be a string")
        items.append(
            {
                "id": item["id"],
                "name": item["name"],
                "amount": _parse_number(item.get("amount"), f"{label}.amount"),
            }
        )
    return items


def parse_budget_input(data: Any) -> BudgetInput:
    """Build a ``BudgetInput`` from its plain-dict (camelCase) form.

    Raises ``InvalidShareData`` when a field is missing, has the wrong type
    or carries an unknown household type, savings mode or split rule.
    """
    _require(isinstance(data, dict), "plan must be an object")

    household_type = data.get("householdType")
    _require(household_type in HOUSEHOLD_TYPES, f"unknown household type: {household_type!r}")

    income_a = _parse_number(data.get("incomeA"), "incomeA")
    income_b = None
    if data.get("incomeB") is not None:
        income_b = _parse_number(data["incomeB"], "incomeB")

    bills = [Bill(**item) for item in _parse_items(data.get("bills"), "bills")]
    categories = [Category(**item) for item in _parse_items(data.get("categories"), "categories")]

    savings = data.get("savings")
    _require(isinstance(savings, dict), "savings must be an object")
    _require(savings.get("mode") in SAVINGS_MODES, f"unknown savings mode: {savings.get('mode')!r}")
    savings_rule = SavingsRule(
        mode=savings["mode"],
        value=_parse_number(savings.get("value"), "savings.value"),
    )

    couple = None
    if data.get("couple") is not None:
        raw_couple = data["couple"]
        _require(isinstance(raw_couple, dict), "couple must be an object")
        split_rule = raw_couple.get("splitRule")
        _require(split_rule in SPLIT_RULES, f"unknown split rule: {split_rule!r}")
        couple = CoupleSettings(split_rule=split_rule)

    return BudgetInput(
        household_type=household_type,
        income_a=income_a,
        income_b=income_b,
        bills=bills,
        categories=categories,
        savings=savings_rule,
        couple=couple,
    )


def encode_plan(plan: BudgetInput) -> str:
    """Encode a plan into a URL-safe token."""
    try:
        payload = json.dumps(plan.to_dict(), ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise InvalidShareData(f"plan cannot be encoded: {exc}") from exc
    token = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
    return token.replace("=", ".")


def _reject_constant(name: str) -> None:
    raise InvalidShareData(f"non-finite number in plan: {name}")


def decode_plan(token: str) -> BudgetInput:
    """Inverse of :func:`encode_plan`.

    Raises ``InvalidShareData`` if the token cannot be decoded into a
    complete plan.
    """
    if not isinstance(token, str) or not token.strip():
        raise InvalidShareData("empty share token")
    b64 = token.strip().replace(".", "=")
    try:
        raw = base64.urlsafe_b64decode(b64.encode("ascii"))
        payload = raw.decode("utf-8")
        data = json.loads(payload, parse_constant=_reject_constant)
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as exc:
        if isinstance(exc, InvalidShareData):
            raise
        logger.info("Rejected share token: %s", exc)
        raise InvalidShareData("share token is not a valid encoded plan") from exc
    return parse_budget_input(data)


def build_share_url(base_url: str, plan: BudgetInput) -> str:
    """Return ``base_url`` with the encoded plan attached as ``?data=``."""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({SHARE_QUERY_PARAM: encode_plan(plan)})}"
