"""Admin password hashing.

New hashes use ``bcrypt_sha256`` so long passphrases are not truncated at
bcrypt's 72 byte limit. Plain ``bcrypt`` hashes still verify and are
reported as needing an upgrade.
"""

import logging

from passlib.context import CryptContext
from passlib.handlers import bcrypt as passlib_bcrypt

logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)


def _guard_bcrypt_backend() -> None:
    backend = passlib_bcrypt._BcryptBackend
    if getattr(backend, "_certify_guarded", False):
        return
    verify = backend.verify.__func__

    def verify_within_limit(cls, secret, hash, **kwargs):
        try:
            return verify(cls, secret, hash, **kwargs)
        except ValueError as exc:
            # bcrypt>=4.1 raises instead of truncating
            if "longer than 72 bytes" not in str(exc):
                raise
            return False

    backend.verify = classmethod(verify_within_limit)
    # skip passlib's wraparound probe, which newer bcrypt rejects
    backend._workrounds_initialized = True
    backend._certify_guarded = True


_guard_bcrypt_backend()

pwd_ctx = CryptContext(schemes=["bcrypt_sha256", "bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_ctx.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    ok, _ = verify_and_upgrade(plain, hashed)
    return ok


def verify_and_upgrade(plain: str, hashed: str | None) -> tuple[bool, str | None]:
    """Check ``plain`` and return a replacement hash when ``hashed`` is outdated."""
    if not plain or not hashed:
        return False, None
    try:
        return pwd_ctx.verify_and_update(plain, hashed)
    except ValueError:
        return False, None
