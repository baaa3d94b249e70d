"""
Password hashing and strength rules for TradeDesk logins.

Hashes are bcrypt with a configurable cost. ``PasswordValidator`` returns
every broken rule at once so the sign-up form can show them together.
"""

import logging
import re
from collections.abc import Callable

import bcrypt

logger = logging.getLogger(__name__)

ENCODING = "utf-8"

# Checked when the email is unknown so a failed login costs the same either way
_DUMMY_HASH = bcrypt.hashpw(b"tradedesk-unknown-login", bcrypt.gensalt(rounds=4)).decode(ENCODING)


class PasswordHasher:
    """bcrypt hashing at a fixed cost; older, cheaper hashes are flagged for rehash."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> str:
        digest = bcrypt.hashpw(password.encode(ENCODING), bcrypt.gensalt(rounds=self.rounds))
        return digest.decode(ENCODING)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(ENCODING), password_hash.encode(ENCODING))
        except ValueError as e:
            logger.error(f"Stored password hash is unreadable: {e}")
            return False

    def verify_dummy(self, password: str) -> None:
        self.verify(password, _DUMMY_HASH)

    def needs_rehash(self, password_hash: str) -> bool:
        # Layout is $2b$<cost>$<salt+hash>
        parts = password_hash.split("$")
        if len(parts) < 3 or not parts[2].isdigit():
            return False
        return int(parts[2]) < self.rounds


def _has_run(password: str, length: int = 3) -> bool:
    """True for ascending runs such as ``123`` or ``abc``."""
    for start in range(len(password) - length + 1):
        chunk = password[start : start + length]
        if not (chunk.isdigit() or chunk.isalpha()):
            continue
        if all(ord(b) - ord(a) == 1 for a, b in zip(chunk, chunk[1:])):
            return True
    return False


class PasswordValidator:
    """Strength rules applied at registration and password change."""

    MIN_LENGTH = 12
    MAX_LENGTH = 128

    SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{}|;:,.<>?]")

    # Generic favourites plus the words people reach for on a trading site
    COMMON_PASSWORDS = frozenset(
        {
            "password",
            "password123",
            "123456789012",
            "qwertyuiop12",
            "iloveyou1234",
            "welcome12345",
            "admin1234567",
            "tradedesk123",
            "tradedesk@123",
            "nifty50nifty50",
            "sensex123456",
            "stockmarket1",
            "bullmarket123",
        }
    )

    RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
        (lambda p: len(p) >= PasswordValidator.MIN_LENGTH,
         f"Password must be at least {MIN_LENGTH} characters long"),
        (lambda p: len(p) <= PasswordValidator.MAX_LENGTH,
         f"Password must not exceed {MAX_LENGTH} characters"),
        (lambda p: re.search(r"[A-Z]", p) is not None,
         "Password must contain at least one uppercase letter"),
        (lambda p: re.search(r"[a-z]", p) is not None,
         "Password must contain at least one lowercase letter"),
        (lambda p: re.search(r"\d", p) is not None,
         "Password must contain at least one number"),
        (lambda p: PasswordValidator.SPECIAL_CHARACTERS.search(p) is not None,
         "Password must contain at least one special character"),
        (lambda p: p.lower() not in PasswordValidator.COMMON_PASSWORDS,
         "Password is too common"),
        (lambda p: not _has_run(p), "Password contains sequential characters"),
    )

    @classmethod
    def validate(cls, password: str, email: str | None = None) -> tuple[bool, list[str]]:
        """
        Check ``password`` against every rule.

        Args:
            password: Candidate password
            email: Owner's email; a password containing its local part is refused

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = [message for rule, message in cls.RULES if not rule(password)]

        local_part = (email or "").split("@", 1)[0].lower()
        if len(local_part) >= 4 and local_part in password.lower():
            errors.append("Password must not contain your email address")

        return not errors, errors
