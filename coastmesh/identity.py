"""
External ID to array position lookup for nodes and elements.

Freshly generated meshes number entities 1..n in file order ("logical"
numbering), in which case the position is ``id - 1`` and no table is needed.
Edited or merged meshes may have gaps or reordered IDs; those get an explicit
dictionary built in one pass.
"""

import logging
from typing import Dict, Iterable, Sequence

from .cache import CacheState
from .errors import DuplicateIdentityError, IdentityNotFoundError, MeshError

logger = logging.getLogger(__name__)


class DirectLookup:
    """Position is ``id - 1``; valid for IDs 1..size."""

    is_logical = True

    def __init__(self, size: int):
        self.size = size

    def __repr__(self):
        return f"DirectLookup(size={self.size})"

    def position(self, entity_id: int) -> int:
        entity_id = int(entity_id)
        if 1 <= entity_id <= self.size:
            return entity_id - 1
        raise IdentityNotFoundError(f"ID {entity_id} not found")

    def __contains__(self, entity_id) -> bool:
        return 1 <= int(entity_id) <= self.size


class MappedLookup:
    """Position is read from an explicit ``{id: position}`` table."""

    is_logical = False

    def __init__(self, table: Dict[int, int]):
        self.table = table

    def __repr__(self):
        return f"MappedLookup(size={len(self.table)})"

    @property
    def size(self) -> int:
        return len(self.table)

    def position(self, entity_id: int) -> int:
        try:
            return self.table[int(entity_id)]
        except KeyError:
            raise IdentityNotFoundError(f"ID {entity_id} not found") from None

    def __contains__(self, entity_id) -> bool:
        return int(entity_id) in self.table


def ids_are_logical(ids: Iterable[int]) -> bool:
    """True if the i-th ID (0-based) is i + 1 for every entry."""
    for i, entity_id in enumerate(ids):
        if entity_id != i + 1:
            return False
    return True


def build_lookup(ids: Sequence[int], label: str = "entity"):
    """
    Choose the lookup strategy for an ordered ID sequence.

    Args:
        ids: External IDs in storage order.
        label: Collection name used in messages ("node", "element").

    Returns:
        DirectLookup or MappedLookup.

    Raises:
        DuplicateIdentityError: If an ID appears more than once.
    """
    if ids_are_logical(ids):
        return DirectLookup(len(ids))

    table: Dict[int, int] = {}
    for position, entity_id in enumerate(ids):
        entity_id = int(entity_id)
        if entity_id in table:
            raise DuplicateIdentityError(
                f"Duplicate {label} ID {entity_id} at positions "
                f"{table[entity_id]} and {position}"
            )
        table[entity_id] = position
    logger.info(f"{label.capitalize()} numbering is not sequential, using an ID lookup table")
    return MappedLookup(table)


class IdentityIndex:
    """
    Cached lookup for one entity collection.

    The owning mesh calls ``build`` after a read, ``invalidate`` after any
    mutation and ``reset`` when the mesh is cleared. Queries on an index that
    is not PRESENT raise, so a missed rebuild shows up as an error instead of
    a wrong position.
    """

    def __init__(self, label: str):
        self.label = label
        self.state = CacheState.ABSENT
        self._lookup = None

    def __repr__(self):
        return f"IdentityIndex({self.label!r}, state={self.state.value}, lookup={self._lookup!r})"

    def build(self, ids: Sequence[int]) -> None:
        self._lookup = build_lookup(ids, self.label)
        self.state = CacheState.PRESENT

    def adopt(self, lookup) -> None:
        """Install a lookup already built by a reader."""
        self._lookup = lookup
        self.state = CacheState.PRESENT

    def invalidate(self) -> None:
        if self.state is CacheState.PRESENT:
            self.state = CacheState.STALE

    def reset(self) -> None:
        self._lookup = None
        self.state = CacheState.ABSENT

    @property
    def is_logical(self) -> bool:
        self._require_present()
        return self._lookup.is_logical

    def position(self, entity_id: int) -> int:
        """
        Array position of ``entity_id``.

        Raises:
            IdentityNotFoundError: If no entity carries the ID.
            MeshError: If the index is absent or stale.
        """
        self._require_present()
        try:
            return self._lookup.position(entity_id)
        except IdentityNotFoundError:
            raise IdentityNotFoundError(f"{self.label.capitalize()} ID {entity_id} not found") from None

    def __contains__(self, entity_id) -> bool:
        self._require_present()
        return entity_id in self._lookup

    def _require_present(self) -> None:
        if self.state is not CacheState.PRESENT:
            raise MeshError(f"{self.label.capitalize()} ID index is {self.state.value}; rebuild it first")
