"""
Credential hashing.

Two schemes live behind the same small interface:

- ``LegacyDigestHasher``: sha256(secret + fixed salt) as hex. This is what the
  older ledger stored, so every account shares the same salt and identical
  passwords give identical digests.
- ``PasslibHasher``: passlib pbkdf2_sha256 with a per-account salt. It still
  accepts legacy digests so migrated accounts can log in, and flags them for
  an upgrade on the next successful login.
"""

import hashlib
import hmac
import re
from typing import Optional

from passlib.context import CryptContext

LEGACY_SALT = "bisht_salt_2026"
_HEX64 = re.compile(r"^[0-9a-f]{64}$")


class CredentialHasher:
    name = "base"

    def hash(self, secret: str) -> str:
        raise NotImplementedError

    def verify(self, secret: str, credential: str) -> bool:
        raise NotImplementedError

    def needs_update(self, credential: str) -> bool:
        return False

    def looks_hashed(self, value: str) -> bool:
        raise NotImplementedError


class LegacyDigestHasher(CredentialHasher):
    name = "legacy_sha256"

    def __init__(self, salt: str = LEGACY_SALT):
        self._salt = salt

    def hash(self, secret: str) -> str:
        return hashlib.sha256((secret + self._salt).encode("utf-8")).hexdigest()

    def verify(self, secret: str, credential: str) -> bool:
        if secret is None or not credential:
            return False
        return hmac.compare_digest(self.hash(secret), credential)

    def looks_hashed(self, value: str) -> bool:
        return bool(value) and bool(_HEX64.match(value))


class PasslibHasher(CredentialHasher):
    name = "pbkdf2_sha256"

    def __init__(self, schemes=("pbkdf2_sha256",), legacy: Optional[LegacyDigestHasher] = None):
        self._pwd = CryptContext(schemes=list(schemes), deprecated="auto")
        self._legacy = legacy or LegacyDigestHasher()

    def hash(self, secret: str) -> str:
        return self._pwd.hash(secret)

    def verify(self, secret: str, credential: str) -> bool:
        if not secret or not credential:
            return False
        if self._legacy.looks_hashed(credential):
            return self._legacy.verify(secret, credential)
        try:
            return self._pwd.verify(secret, credential)
        except (ValueError, TypeError):
            return False

    def needs_update(self, credential: str) -> bool:
        if self._legacy.looks_hashed(credential):
            return True
        return self._pwd.needs_update(credential)

    def looks_hashed(self, value: str) -> bool:
        if not value:
            return False
        return self._legacy.looks_hashed(value) or self._pwd.identify(value) is not None


def get_hasher(scheme: str) -> CredentialHasher:
    if scheme == LegacyDigestHasher.name:
        return LegacyDigestHasher()
    if scheme == PasslibHasher.name:
        return PasslibHasher()
    raise ValueError(f"unknown password scheme: {scheme}")
