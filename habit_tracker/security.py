"""Password hashing over a passlib `CryptContext`."""

from functools import cached_property

from passlib.context import CryptContext

from habit_tracker.errors import HashingError, MalformedHash


class PasswordHasher:
    """Salted one-way password hashing.

    The algorithm is whatever the wrapped context prefers (bcrypt by default);
    `rounds` fixes the bcrypt cost so hashing time is bounded.
    """

    def __init__(self, schemes=("bcrypt",), rounds: int = 12):
        options = {}
        if "bcrypt" in schemes:
            options["bcrypt__rounds"] = rounds
        self._context = CryptContext(schemes=list(schemes), deprecated="auto", **options)

    def hash(self, plaintext: str) -> str:
        try:
            return self._context.hash(plaintext)
        except Exception as exc:
            raise HashingError("Failed to hash password") from exc

    @cached_property
    def _dummy_hash(self) -> str:
        return self._context.hash("dummy-password")

    def verify_dummy(self, plaintext: str) -> None:
        """Run a full verify against a fixed hash; used when the login is unknown."""
        self._context.verify(plaintext, self._dummy_hash)

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return whether `plaintext` matches `hashed`.

        A mismatch is reported as False; a stored value that is not a hash
        this context understands raises MalformedHash.
        """
        if not hashed:
            raise MalformedHash("Stored password hash is empty")
        try:
            return self._context.verify(plaintext, hashed)
        except (ValueError, TypeError) as exc:
            raise MalformedHash("Stored password hash is malformed") from exc
