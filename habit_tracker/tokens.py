"""Stateless session tokens (HS256 JWTs via python-jose).

A token is valid when its signature matches the process signing key and the
current time is not past its `exp` claim. Nothing is stored server side.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import BaseModel

from habit_tracker.errors import Expired, Malformed, SignatureInvalid

DEFAULT_LIFETIME = timedelta(days=7)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Claims(BaseModel):
    user_id: int
    login: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = lifetime
        self._clock = clock

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, user_id: int, login: str) -> str:
        issued_at = int(self._clock().timestamp())
        payload = {
            "sub": str(user_id),
            "login": login,
            "iat": issued_at,
            "exp": issued_at + int(self._lifetime.total_seconds()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def validate(self, token: str) -> Claims:
        """Verify the signature, then the expiry, and return the embedded claims.

        Raises Malformed when the token cannot be read as a claim set,
        SignatureInvalid when it was not signed with our key and Expired once
        the clock is past `exp`.
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise Malformed() from exc

        try:
            # expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            raise Malformed() from exc
        except JWTError as exc:
            raise SignatureInvalid() from exc

        try:
            claims = Claims(
                user_id=payload["sub"],
                login=payload["login"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise Malformed() from exc

        if self._clock() > claims.expires_at:
            raise Expired()
        return claims
