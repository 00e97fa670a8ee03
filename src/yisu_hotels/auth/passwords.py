"""Password hashing helpers (scrypt, hex encoded)."""
from __future__ import annotations

import hashlib
import hmac
import re

KEY_LENGTH = 64
_HEX_HASH = re.compile(r"^[a-f0-9]{128}$", re.IGNORECASE)


class PasswordHasher:
    """Hashes passwords with scrypt under a fixed salt.

    Stored values that are not 128-char hex digests are legacy plaintext
    records; they still verify by direct comparison so the caller can upgrade
    them after a successful login.
    """

    def __init__(self, salt: str) -> None:
        self._salt = salt.encode("utf-8")

    def hash(self, password: str) -> str:
        digest = hashlib.scrypt(
            str(password).encode("utf-8"),
            salt=self._salt,
            n=16384,
            r=8,
            p=1,
            dklen=KEY_LENGTH,
        )
        return digest.hex()

    def verify(self, password: str, stored: str) -> bool:
        if not is_hashed(stored):
            return hmac.compare_digest(str(password).encode("utf-8"), str(stored or "").encode("utf-8"))
        return hmac.compare_digest(self.hash(password), stored.lower())


def is_hashed(value: object) -> bool:
    return isinstance(value, str) and bool(_HEX_HASH.match(value))
