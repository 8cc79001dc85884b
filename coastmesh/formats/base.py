"""
Shared pieces of the mesh codecs: the decoded payload and line parsing.

Readers never touch a Mesh. They return a MeshContents that the Mesh adopts
in one step, so a failed read cannot leave a half-filled mesh behind.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..boundary import Boundary
from ..errors import DuplicateIdentityError, MalformedRecordError
from ..geometry import Element, Node
from ..identity import build_lookup


@dataclass
class MeshContents:
    header: str = ""
    nodes: List[Node] = field(default_factory=list)
    elements: List[Element] = field(default_factory=list)
    open_boundaries: List[Boundary] = field(default_factory=list)
    land_boundaries: List[Boundary] = field(default_factory=list)
    node_lookup: object = None
    element_lookup: object = None
    # reference system stored in the file, if the format carries one
    epsg: Optional[int] = None
    is_latlon: Optional[bool] = None

    @property
    def num_triangles(self) -> int:
        return sum(1 for e in self.elements if e.is_triangle)

    @property
    def num_quads(self) -> int:
        return sum(1 for e in self.elements if e.is_quad)


def lookup_for(ids, label: str, filename: str):
    """Build an ID lookup, reporting duplicates as a malformed file."""
    try:
        return build_lookup(ids, label)
    except DuplicateIdentityError as e:
        raise MalformedRecordError(str(e), filename) from e


class LineReader:
    """
    Reads a text file line by line while keeping the line number for errors.

    Args:
        file: Open text file.
        filename (str): Name used in error messages.
    """

    def __init__(self, file, filename: str):
        self._file = file
        self.filename = filename
        self.line_number = 0

    def error(self, message: str) -> MalformedRecordError:
        return MalformedRecordError(message, self.filename, self.line_number)

    def next_line(self, what: str) -> str:
        line = self._file.readline()
        if line == "":
            raise MalformedRecordError(
                f"Unexpected end of file while reading {what}", self.filename, self.line_number + 1
            )
        self.line_number += 1
        return line.rstrip("\r\n")

    def next_fields(self, what: str, count: int) -> List[str]:
        """Split the next line, requiring at least ``count`` fields."""
        fields = self.next_line(what).split()
        if len(fields) < count:
            raise self.error(f"Error reading {what}: expected {count} fields, found {len(fields)}")
        return fields

    def to_int(self, token: str, what: str) -> int:
        try:
            return int(token)
        except ValueError:
            raise self.error(f"Error reading {what}: '{token}' is not an integer") from None

    def to_count(self, token: str, what: str) -> int:
        value = self.to_int(token, what)
        if value < 0:
            raise self.error(f"Error reading {what}: negative count {value}")
        return value

    def to_float(self, token: str, what: str) -> float:
        try:
            return float(token)
        except ValueError:
            raise self.error(f"Error reading {what}: '{token}' is not a number") from None
