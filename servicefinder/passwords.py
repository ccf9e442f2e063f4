"""Password hashing with bcrypt."""

from __future__ import annotations

import bcrypt

DEFAULT_COST = 10


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of ``plain``."""
    hashed = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=DEFAULT_COST))
    return hashed.decode("ascii")


def check_password(hashed: str, plain: str) -> bool:
    """Tell whether ``plain`` matches the bcrypt ``hashed`` value."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False