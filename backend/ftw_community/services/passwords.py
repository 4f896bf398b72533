"""
FTW Community Backend — Passkey Hashing
========================================

What:  One-way, salted hashing and verification of passkeys.
How:   passlib CryptContext with the bcrypt scheme. Verification is the ONLY
       way a passkey is ever compared: there is no code path that compares a
       submitted passkey with a stored value directly.
"""

import logging

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


class PasswordHasher:
    """
    bcrypt hashing behind a small interface.

    Args:
        rounds: bcrypt cost factor (settings.bcrypt_rounds)
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, secret: str) -> str:
        return self._context.hash(secret)

    def verify(self, secret: str, hashed: str) -> bool:
        """
        Check `secret` against a stored hash.

        Returns False (never raises) for an empty secret or a stored value
        passlib cannot identify, such as a legacy plaintext passkey.
        """
        if not secret or not hashed:
            return False
        try:
            return self._context.verify(secret, hashed)
        except (ValueError, TypeError):
            logger.warning("Stored passkey hash is not in a recognised format")
            return False

    def dummy_verify(self) -> None:
        """Spend the same time as a real verification (unknown team ids)."""
        self._context.dummy_verify()

    def needs_rehash(self, hashed: str) -> bool:
        try:
            return self._context.needs_update(hashed)
        except (ValueError, TypeError):
            return True
