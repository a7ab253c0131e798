"""User persistence and the register/login flows built on it."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from habit_tracker.errors import InvalidCredentials, LoginTaken, MissingField, UserNotFound
from habit_tracker.models import User
from habit_tracker.security import PasswordHasher
from habit_tracker.tokens import TokenService

log = structlog.get_logger(__name__)


class UserStore:
    """Credential store over the `users` table."""

    def __init__(self, db: Session):
        self.db = db

    def create_if_absent(self, login: str, password_hash: str, name: str, bio: str | None = None) -> User:
        """Insert a user; raises LoginTaken when the login already exists.

        Uniqueness is decided by the unique index on `users.login`, so two
        concurrent registrations cannot both succeed.
        """
        if not login:
            raise MissingField("login is required")
        if not password_hash:
            raise ValueError("password_hash must not be empty")

        user = User(login=login, password_hash=password_hash, name=name, bio=bio)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise LoginTaken()
        self.db.refresh(user)
        return user

    def get_by_login(self, login: str) -> User | None:
        return self.db.execute(select(User).where(User.login == login)).scalars().first()

    def get(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)


class AccountService:
    def __init__(self, store: UserStore, hasher: PasswordHasher, tokens: TokenService):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def register(self, login: str, password: str, name: str, bio: str | None = None) -> tuple[User, str]:
        if not password:
            raise MissingField("password is required")
        user = self.store.create_if_absent(login, self.hasher.hash(password), name, bio)
        log.info("user_registered", user_id=user.id, login=user.login)
        return user, self.tokens.issue(user.id, user.login)

    def authenticate(self, login: str, password: str) -> tuple[User, str]:
        """Check credentials and issue a session token.

        Unknown login and wrong password produce the same error.
        """
        user = self.store.get_by_login(login)
        if user is None:
            self.hasher.verify_dummy(password)
        if user is None or not self.hasher.verify(password, user.password_hash):
            log.info("login_failed", login=login)
            raise InvalidCredentials()
        log.info("login_succeeded", user_id=user.id)
        return user, self.tokens.issue(user.id, user.login)

    def current_user(self, user_id: int) -> User:
        user = self.store.get(user_id)
        if user is None:
            raise UserNotFound()
        return user
