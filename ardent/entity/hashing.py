"""Salted PBKDF2 password hashing.

Hashes are encoded as ``pbkdf2_<algorithm>$<iterations>$<salt>$<digest>``
so that check() can verify values hashed under older settings.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional, Tuple

from ardent.core.settings.settings import get_settings

logger = logging.getLogger(__name__)

PREFIX = "pbkdf2_"


class Pbkdf2Hasher:
    """One-way hasher built on hashlib.pbkdf2_hmac."""

    def __init__(
        self,
        algorithm: Optional[str] = None,
        iterations: Optional[int] = None,
        salt_bytes: Optional[int] = None,
    ):
        """Initialize the hasher.

        Args:
            algorithm: Digest name, from settings when None
            iterations: Iteration count, from settings when None
            salt_bytes: Salt length, from settings when None
        """
        settings = get_settings()
        self.algorithm = algorithm or settings.hash_algorithm
        self.iterations = iterations or settings.hash_iterations
        self.salt_bytes = salt_bytes or settings.hash_salt_bytes

    def _digest(self, value: str, salt: str, algorithm: str, iterations: int) -> str:
        return hashlib.pbkdf2_hmac(algorithm, str(value).encode("utf-8"), salt.encode("utf-8"), iterations).hex()

    def make(self, value: str) -> str:
        """Hash a plain text value with a fresh salt."""
        salt = secrets.token_hex(self.salt_bytes)
        digest = self._digest(value, salt, self.algorithm, self.iterations)
        return f"{PREFIX}{self.algorithm}${self.iterations}${salt}${digest}"

    @staticmethod
    def _parse(hashed_value: str) -> Optional[Tuple[str, int, str, str]]:
        if not isinstance(hashed_value, str) or not hashed_value.startswith(PREFIX):
            return None
        parts = hashed_value[len(PREFIX):].split("$")
        if len(parts) != 4 or not parts[1].isdigit():
            return None
        algorithm, iterations, salt, digest = parts
        return algorithm, int(iterations), salt, digest

    def check(self, value: str, hashed_value: str) -> bool:
        """Check a plain text value against a hash."""
        parsed = self._parse(hashed_value)
        if parsed is None:
            return False
        algorithm, iterations, salt, digest = parsed
        return hmac.compare_digest(self._digest(value, salt, algorithm, iterations), digest)

    def needs_rehash(self, hashed_value: str) -> bool:
        """Whether a hash was made with other settings than the current ones."""
        parsed = self._parse(hashed_value)
        if parsed is None:
            return True
        algorithm, iterations, _, _ = parsed
        return algorithm != self.algorithm or iterations != self.iterations

    @classmethod
    def is_hashed(cls, value: str) -> bool:
        return cls._parse(value) is not None
