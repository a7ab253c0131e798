from dataclasses import dataclass

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer

from habit_tracker.deps import get_account_service, get_token_service
from habit_tracker.errors import MissingToken, TokenError
from habit_tracker.schemas import AuthResponse, LoginRequest, RegisterRequest, UserOut
from habit_tracker.tokens import TokenService
from habit_tracker.users import AccountService

log = structlog.get_logger(__name__)

router = APIRouter(tags=["Auth"])

# auto_error=False so a missing header goes through our own 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login", auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: int
    login: str


# -- AUTH GATE --

def get_current_identity(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """Resolve the bearer token into the caller's identity or reject the request."""
    if not token:
        raise MissingToken()
    try:
        claims = tokens.validate(token)
    except TokenError as exc:
        log.info("token_rejected", reason=exc.code, path=request.url.path)
        raise
    identity = Identity(user_id=claims.user_id, login=claims.login)
    request.state.identity = identity
    return identity


# -- ROUTES --

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
    """
    Registers a new user and returns it with a session token.
    """
    user, token = accounts.register(payload.login, payload.password, payload.name, payload.bio)
    return {"user": user, "token": token}


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    """
    Login with login and password, returns the user and a JWT.
    """
    user, token = accounts.authenticate(payload.login, payload.password)
    return {"user": user, "token": token}


@router.get("/me", response_model=UserOut)
def me(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    return accounts.current_user(identity.user_id)
