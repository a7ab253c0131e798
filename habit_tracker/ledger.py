"""Completion ledger: the per-(habit, date) toggle and "undo most recent".

Each (habit, date) pair is either absent (no row) or present (exactly one
row). `toggle` flips between the two; `undo_last` removes the latest row.
The unique constraint `uq_completion_habit_date` is what guarantees at most
one row per pair: a toggle that loses an insert race to a concurrent toggle
gets an IntegrityError, rolls back and is reported as CompletionConflict.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from habit_tracker.errors import CompletionConflict, HabitNotFound, InvalidDate, NoCompletions
from habit_tracker.habits import HabitRegistry
from habit_tracker.models import Completion

log = structlog.get_logger(__name__)

DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_completion_date(value) -> date:
    """Parse a strict `YYYY-MM-DD` calendar date."""
    if not isinstance(value, str) or not DATE_FORMAT.match(value):
        raise InvalidDate()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDate() from exc


@dataclass
class ToggleResult:
    completed: bool
    date: date


class CompletionLedger:
    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id
        self.habits = HabitRegistry(db, owner_id)

    def _find_completion(self, habit_id: int, day: date) -> Completion | None:
        stmt = select(Completion).where(
            Completion.habit_id == habit_id,
            Completion.date_completed == day,
        )
        return self.db.execute(stmt).scalars().first()

    def _owned_habit(self, habit_id: int):
        habit = self.habits.find(habit_id)
        if habit is None:
            raise HabitNotFound()
        return habit

    def toggle(self, habit_id: int, value: str) -> ToggleResult:
        day = parse_completion_date(value)
        habit = self._owned_habit(habit_id)

        existing = self._find_completion(habit.id, day)
        if existing is not None:
            self.db.delete(existing)
            self.db.commit()
            log.info("completion_toggled", habit_id=habit.id, date=day.isoformat(), completed=False)
            return ToggleResult(completed=False, date=day)

        self.db.add(Completion(habit_id=habit.id, date_completed=day))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if self._find_completion(habit.id, day) is None:
                raise
            log.warning("completion_conflict", habit_id=habit.id, date=day.isoformat())
            raise CompletionConflict()
        log.info("completion_toggled", habit_id=habit.id, date=day.isoformat(), completed=True)
        return ToggleResult(completed=True, date=day)

    def undo_last(self, habit_id: int) -> date:
        """Delete the completion with the latest date and return that date."""
        habit = self._owned_habit(habit_id)

        stmt = (
            select(Completion)
            .where(Completion.habit_id == habit.id)
            .order_by(Completion.date_completed.desc(), Completion.id.desc())
            .limit(1)
        )
        latest = self.db.execute(stmt).scalars().first()
        if latest is None:
            raise NoCompletions()
        day = latest.date_completed
        self.db.delete(latest)
        self.db.commit()
        log.info("completion_undone", habit_id=habit.id, date=day.isoformat())
        return day
