"""Habit records scoped to their owner, plus the public profile read."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from habit_tracker.errors import HabitNotFound, MissingField, UserNotFound
from habit_tracker.models import Habit, User

log = structlog.get_logger(__name__)


class HabitRegistry:
    """CRUD over the habits of one user.

    The owner is fixed at construction (from the authenticated identity) and
    every query filters on `(id, user_id)` together, so another user's habit
    looks exactly like a missing one.
    """

    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id

    def _owned(self):
        return select(Habit).where(Habit.user_id == self.owner_id)

    def create(self, name: str, goal: str = "", is_public: bool = False) -> Habit:
        if not name:
            raise MissingField("name is required")
        habit = Habit(user_id=self.owner_id, name=name, goal=goal or "", is_public=bool(is_public))
        self.db.add(habit)
        self.db.commit()
        self.db.refresh(habit)
        log.info("habit_created", user_id=self.owner_id, habit_id=habit.id)
        return habit

    def list_owned(self) -> list[Habit]:
        stmt = self._owned().options(selectinload(Habit.completions)).order_by(Habit.id)
        return list(self.db.execute(stmt).scalars().all())

    def find(self, habit_id: int) -> Habit | None:
        stmt = self._owned().where(Habit.id == habit_id)
        return self.db.execute(stmt).scalars().first()

    def get(self, habit_id: int) -> Habit:
        stmt = self._owned().where(Habit.id == habit_id).options(selectinload(Habit.completions))
        habit = self.db.execute(stmt).scalars().first()
        if habit is None:
            raise HabitNotFound()
        return habit

    def update(
        self,
        habit_id: int,
        name: str | None = None,
        goal: str | None = None,
        is_public: bool | None = None,
    ) -> Habit:
        """Overwrite only the fields that were supplied.

        None and "" both mean "leave as is", so name and goal cannot be
        cleared through an update.
        """
        habit = self.get(habit_id)
        if name:
            habit.name = name
        if goal:
            habit.goal = goal
        if is_public is not None:
            habit.is_public = is_public
        self.db.commit()
        self.db.refresh(habit)
        return habit

    def delete(self, habit_id: int) -> None:
        habit = self.find(habit_id)
        if habit is None:
            raise HabitNotFound()
        # completions go with it (delete-orphan cascade)
        self.db.delete(habit)
        self.db.commit()
        log.info("habit_deleted", user_id=self.owner_id, habit_id=habit_id)


def list_public(db: Session, login: str) -> tuple[User, list[Habit]]:
    """Return a user and their public habits, completions attached."""
    user = db.execute(select(User).where(User.login == login)).scalars().first()
    if user is None:
        raise UserNotFound()
    stmt = (
        select(Habit)
        .where(Habit.user_id == user.id, Habit.is_public.is_(True))
        .options(selectinload(Habit.completions))
        .order_by(Habit.id)
    )
    return user, list(db.execute(stmt).scalars().all())
