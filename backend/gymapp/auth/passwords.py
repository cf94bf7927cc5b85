"""Password hashing and the password policy enforced at registration."""

import re

import bcrypt

MIN_PASSWORD_LENGTH = 8

_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[a-z]"), "Password must include a lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must include an uppercase letter"),
    (re.compile(r"\d"), "Password must include a number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must include a special character"),
)


def hash_password(password: str) -> str:
    """Hash a plain-text password with a fresh bcrypt salt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def password_policy_errors(password: str) -> list[str]:
    """Return every policy rule the password violates (empty list when it is acceptable)."""
    errors: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    errors.extend(message for pattern, message in _RULES if not pattern.search(password))
    return errors
