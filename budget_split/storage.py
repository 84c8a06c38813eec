"""Persistence layer for saved plans.

Plans are kept as one JSON array under a single versioned key in a small
key-value storage provider. Two providers are available: an in-memory dict
(tests, throwaway sessions) and a SQLAlchemy table that defaults to SQLite
but accepts any SQLAlchemy-compatible URL. ``PlanStore`` never raises on a
corrupt payload; it reads as an empty list instead.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import database_url
from .data_models import BudgetInput, SavedPlan
from .share import InvalidShareData, parse_budget_input

logger = logging.getLogger(__name__)

# Increment the version if the structure of a saved plan changes.
PLANS_KEY = "budget-split:plans:v1"

Base = declarative_base()


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Dict-backed storage provider."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class StoredValueModel(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class SqlKeyValueStorage:
    """Database-backed storage provider."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def get_item(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.get(StoredValueModel, key)
            return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            row = session.get(StoredValueModel, key)
            if row:
                row.value = value
            else:
                session.add(StoredValueModel(key=key, value=value))
            session.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as session:
            row = session.get(StoredValueModel, key)
            if row:
                session.delete(row)
                session.commit()


def _parse_saved_plan(raw: object) -> SavedPlan:
    if not isinstance(raw, dict):
        raise InvalidShareData("saved plan must be an object")
    plan_id, name, created_at = raw.get("id"), raw.get("name"), raw.get("createdAt")
    if not all(isinstance(v, str) for v in (plan_id, name, created_at)):
        raise InvalidShareData("saved plan is missing id, name or createdAt")
    return SavedPlan(id=plan_id, name=name, created_at=created_at, data=parse_budget_input(raw.get("data")))


class PlanStore:
    """Named plans, newest first, stored under a single key."""

    def __init__(self, storage: KeyValueStorage, key: str = PLANS_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def list_plans(self) -> List[SavedPlan]:
        raw = self._storage.get_item(self._key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Stored plans under %s are not valid JSON; ignoring them", self._key)
            return []
        if not isinstance(parsed, list):
            logger.warning("Stored plans under %s are not a list; ignoring them", self._key)
            return []
        plans: List[SavedPlan] = []
        for entry in parsed:
            try:
                plans.append(_parse_saved_plan(entry))
            except InvalidShareData as exc:
                logger.warning("Skipping malformed saved plan: %s", exc)
        return plans

    def save_plans(self, plans: List[SavedPlan]) -> None:
        payload = json.dumps([p.to_dict() for p in plans], ensure_ascii=False)
        self._storage.set_item(self._key, payload)

    def add_plan(self, plan: SavedPlan) -> List[SavedPlan]:
        plans = self.list_plans()
        plans.insert(0, plan)
        self.save_plans(plans)
        logger.info("Saved plan %s (%s)", plan.id, plan.name)
        return plans

    def create_plan(self, name: str, data: BudgetInput) -> SavedPlan:
        """Save ``data`` under ``name`` with a fresh id and timestamp."""
        plan = SavedPlan(
            id=uuid4().hex,
            name=name.strip() or "Plan",
            created_at=datetime.now(timezone.utc).isoformat(),
            data=data,
        )
        self.add_plan(plan)
        return plan

    def get_plan(self, plan_id: str) -> Optional[SavedPlan]:
        for plan in self.list_plans():
            if plan.id == plan_id:
                return plan
        return None

    def remove_plan(self, plan_id: str) -> List[SavedPlan]:
        plans = [p for p in self.list_plans() if p.id != plan_id]
        self.save_plans(plans)
        return plans

    def clear(self) -> None:
        self._storage.remove_item(self._key)


def create_storage_from_env(url: Optional[str] = None) -> SqlKeyValueStorage:
    return SqlKeyValueStorage(url or database_url())
