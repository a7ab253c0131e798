"""Shared FastAPI dependencies.

The token service and password hasher are built once in
`create_app` and kept on `app.state`; these helpers hand them to routes.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from habit_tracker.database import get_db
from habit_tracker.security import PasswordHasher
from habit_tracker.tokens import TokenService
from habit_tracker.users import AccountService, UserStore


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_account_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> AccountService:
    return AccountService(UserStore(db), hasher, tokens)
