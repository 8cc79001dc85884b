"""
Boundary model: open boundaries and land boundaries with hydraulic structures.

A boundary is an ordered list of segments tagged by an ADCIRC-style boundary
condition code. The code decides which attributes a segment carries:

    ==================  ===========  ==========================================
    kind                codes        fields in file order
    ==================  ===========  ==========================================
    generic             all others   node1
    external weir       3, 13, 23    node1 crest supercritical
    internal weir       4, 24        node1 node2 crest subcritical supercritical
    weir with culvert   5, 25        node1 node2 crest subcritical supercritical
                                     pipe_height pipe_coefficient pipe_diameter
    ==================  ===========  ==========================================

Attributes that do not belong to the code stay None.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import MeshError

OPEN_BOUNDARY_CODE = -1

EXTERNAL_WEIR_CODES = frozenset({3, 13, 23})
INTERNAL_WEIR_CODES = frozenset({4, 24})
CULVERT_CODES = frozenset({5, 25})


class BoundaryKind(Enum):
    GENERIC = "generic"
    EXTERNAL_WEIR = "external_weir"
    INTERNAL_WEIR = "internal_weir"
    CULVERT = "culvert"


FIELD_LAYOUT: Dict[BoundaryKind, Tuple[str, ...]] = {
    BoundaryKind.GENERIC: ("node1",),
    BoundaryKind.EXTERNAL_WEIR: ("node1", "crest", "supercritical"),
    BoundaryKind.INTERNAL_WEIR: ("node1", "node2", "crest", "subcritical", "supercritical"),
    BoundaryKind.CULVERT: (
        "node1", "node2", "crest", "subcritical", "supercritical",
        "pipe_height", "pipe_coefficient", "pipe_diameter",
    ),
}

NODE_FIELDS = ("node1", "node2")


def boundary_kind(code: int) -> BoundaryKind:
    """Classify a boundary condition code."""
    if code in EXTERNAL_WEIR_CODES:
        return BoundaryKind.EXTERNAL_WEIR
    if code in INTERNAL_WEIR_CODES:
        return BoundaryKind.INTERNAL_WEIR
    if code in CULVERT_CODES:
        return BoundaryKind.CULVERT
    return BoundaryKind.GENERIC


def field_layout(code: int) -> Tuple[str, ...]:
    """Names of the per-segment fields for ``code``, in file order."""
    return FIELD_LAYOUT[boundary_kind(code)]


@dataclass
class BoundarySegment:
    """One entry of a boundary. Node references are external node IDs."""
    node1: int
    node2: Optional[int] = None
    crest: Optional[float] = None
    subcritical: Optional[float] = None
    supercritical: Optional[float] = None
    pipe_height: Optional[float] = None
    pipe_coefficient: Optional[float] = None
    pipe_diameter: Optional[float] = None

    def values(self, code: int) -> tuple:
        """Field values in file order for a boundary of type ``code``."""
        return tuple(getattr(self, name) for name in field_layout(code))

    def node_ids(self) -> List[int]:
        return [n for n in (self.node1, self.node2) if n is not None]

    @classmethod
    def from_values(cls, code: int, values) -> 'BoundarySegment':
        """
        Build a segment from values laid out as in ``field_layout(code)``.

        Raises:
            MeshError: If the number of values does not match the layout.
        """
        layout = field_layout(code)
        values = list(values)
        if len(values) != len(layout):
            raise MeshError(
                f"Boundary code {code} expects {len(layout)} values, got {len(values)}"
            )
        kwargs = {}
        for name, value in zip(layout, values):
            kwargs[name] = int(value) if name in NODE_FIELDS else float(value)
        return cls(**kwargs)


class Boundary:
    """
    An ordered sequence of segments sharing one boundary condition code.

    Open boundaries use ``OPEN_BOUNDARY_CODE`` and reference one node per
    segment.
    """

    def __init__(self, code: int = OPEN_BOUNDARY_CODE, segments=None):
        self.code = int(code)
        self.segments: List[BoundarySegment] = []
        for segment in segments or []:
            self.add_segment(segment)

    def __repr__(self):
        return f"Boundary(code={self.code}, length={self.length})"

    def __eq__(self, other):
        if not isinstance(other, Boundary):
            return NotImplemented
        return self.code == other.code and self.segments == other.segments

    def __len__(self):
        return len(self.segments)

    @property
    def length(self) -> int:
        return len(self.segments)

    @property
    def kind(self) -> BoundaryKind:
        return boundary_kind(self.code)

    @property
    def is_open(self) -> bool:
        return self.code == OPEN_BOUNDARY_CODE

    def add_segment(self, segment: BoundarySegment) -> None:
        """
        Append a segment after checking it carries exactly the fields of this code.

        Raises:
            MeshError: If a required field is missing or a foreign field is set.
        """
        layout = field_layout(self.code)
        for f in fields(segment):
            value = getattr(segment, f.name)
            if f.name in layout and value is None:
                raise MeshError(
                    f"Boundary code {self.code} requires '{f.name}' on every segment"
                )
            if f.name not in layout and value is not None:
                raise MeshError(
                    f"Boundary code {self.code} does not carry '{f.name}'"
                )
        self.segments.append(segment)

    def node_ids(self) -> List[int]:
        """All node IDs referenced by the boundary, in segment order."""
        ids = []
        for segment in self.segments:
            ids.extend(segment.node_ids())
        return ids
