"""Small helpers shared by the registry, notifier and poller."""
import hashlib
from datetime import datetime, timezone
from typing import List, TypeVar

T = TypeVar('T')

# Maximum number of identifiers kept per dedup history list
HISTORY_LIMIT = 500


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def bounded_unshift(items: List[T], item: T, limit: int = HISTORY_LIMIT) -> List[T]:
    """Insert ``item`` at the front of ``items``, dropping any earlier copy.

    The result is truncated to ``limit`` entries, so the oldest identifiers
    fall off the end. An id evicted this way can be rediscovered as new if the
    source still lists it.
    """
    result = [item] + [x for x in items if x != item]
    return result[:limit]


def token_fingerprint(token: str, salt: str = "") -> str:
    """Short salted SHA-256 fingerprint of a token, safe to write to logs."""
    return hashlib.sha256(f"{salt}{token}".encode()).hexdigest()[:10]
