"""State of the caches derived from mesh collections."""

from enum import Enum


class CacheState(Enum):
    """
    ABSENT: never built, or dropped on reset.
    PRESENT: built from the current collections.
    STALE: built, but the collections have changed since.
    """
    ABSENT = "absent"
    PRESENT = "present"
    STALE = "stale"
