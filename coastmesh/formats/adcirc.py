"""
ADCIRC ASCII grid format (fort.14 / .grd).

Layout::

    header line
    NE NP
    NP lines:  id x y z
    NE lines:  id nv n1 n2 n3 [n4]
    NOPE
    NETA
    NOPE times:  nvdll, then nvdll lines of one node id
    NBOU
    NVEL
    NBOU times:  nvell ibtype, then nvell lines laid out by ibtype
                 (see coastmesh.boundary.FIELD_LAYOUT)
"""

import logging
from typing import Any, Dict, List

from ..boundary import NODE_FIELDS, OPEN_BOUNDARY_CODE, Boundary, BoundarySegment, field_layout
from ..geometry import Element, Node
from .base import LineReader, MeshContents, lookup_for

logger = logging.getLogger(__name__)


def _read_nodes(reader: LineReader, nod2d: int, default_z: float) -> List[Node]:
    nodes = []
    for _ in range(nod2d):
        parts = reader.next_fields("nodes", 3)
        nid = reader.to_int(parts[0], "node id")
        x = reader.to_float(parts[1], "node x")
        y = reader.to_float(parts[2], "node y")
        z = reader.to_float(parts[3], "node z") if len(parts) > 3 else default_z
        nodes.append(Node(nid, x, y, z))
    return nodes


def _read_elements(reader: LineReader, elem2d: int, node_lookup) -> List[Element]:
    elements = []
    for _ in range(elem2d):
        parts = reader.next_fields("elements", 2)
        eid = reader.to_int(parts[0], "element id")
        nv = reader.to_int(parts[1], "element node count")
        if nv not in (3, 4):
            raise reader.error(f"Element {eid} has {nv} nodes; only triangles and quadrilaterals are supported")
        if len(parts) < 2 + nv:
            raise reader.error(f"Element {eid} lists fewer than {nv} nodes")
        elnodes = tuple(reader.to_int(p, "element node") for p in parts[2:2 + nv])
        for n in elnodes:
            if n not in node_lookup:
                raise reader.error(f"Element {eid} references unknown node {n}")
        elements.append(Element(eid, elnodes))
    return elements


def _read_boundary_segments(reader: LineReader, code: int, length: int, node_lookup) -> Boundary:
    layout = field_layout(code)
    boundary = Boundary(code)
    for _ in range(length):
        parts = reader.next_fields("boundaries", len(layout))
        values = []
        for name, token in zip(layout, parts):
            if name in NODE_FIELDS:
                nid = reader.to_int(token, "boundary node")
                if nid not in node_lookup:
                    raise reader.error(f"Boundary references unknown node {nid}")
                values.append(nid)
            else:
                values.append(reader.to_float(token, f"boundary {name}"))
        boundary.add_segment(BoundarySegment.from_values(code, values))
    return boundary


def _read_open_boundaries(reader: LineReader, node_lookup) -> List[Boundary]:
    nope = reader.to_count(reader.next_fields("number of open boundaries", 1)[0], "number of open boundaries")
    neta = reader.to_count(reader.next_fields("open boundary node total", 1)[0], "open boundary node total")
    boundaries = []
    for _ in range(nope):
        length = reader.to_count(reader.next_fields("open boundary length", 1)[0], "open boundary length")
        boundaries.append(_read_boundary_segments(reader, OPEN_BOUNDARY_CODE, length, node_lookup))
    total = sum(b.length for b in boundaries)
    if total != neta:
        logger.warning(f"{reader.filename}: open boundary node total is {neta}, counted {total}")
    return boundaries


def _read_land_boundaries(reader: LineReader, node_lookup) -> List[Boundary]:
    nbou = reader.to_count(reader.next_fields("number of land boundaries", 1)[0], "number of land boundaries")
    nvel = reader.to_count(reader.next_fields("land boundary node total", 1)[0], "land boundary node total")
    boundaries = []
    for _ in range(nbou):
        parts = reader.next_fields("land boundary header", 2)
        length = reader.to_count(parts[0], "land boundary length")
        code = reader.to_int(parts[1], "land boundary type")
        boundaries.append(_read_boundary_segments(reader, code, length, node_lookup))
    total = sum(b.length for b in boundaries)
    if total != nvel:
        logger.warning(f"{reader.filename}: land boundary node total is {nvel}, counted {total}")
    return boundaries


def read(filename: str, config: Dict[str, Any]) -> MeshContents:
    """
    Decode an ADCIRC ASCII mesh.

    The node ID lookup is settled right after the node section, so element
    and boundary records can be checked against it as they are read.

    Args:
        filename (str): Path to the mesh file.
        config (Dict[str, Any]): Configuration dictionary.

    Returns:
        MeshContents: Decoded mesh.

    Raises:
        MalformedRecordError: On any line that does not parse.
    """
    with open(filename, 'r') as file:
        reader = LineReader(file, filename)
        header = reader.next_line("mesh header")

        parts = reader.next_fields("mesh size", 2)
        elem2d = reader.to_count(parts[0], "number of elements")
        nod2d = reader.to_count(parts[1], "number of nodes")

        nodes = _read_nodes(reader, nod2d, float(config["mesh"]["default_z"]))
        node_lookup = lookup_for([n.id for n in nodes], "node", filename)

        elements = _read_elements(reader, elem2d, node_lookup)
        element_lookup = lookup_for([e.id for e in elements], "element", filename)

        open_boundaries = _read_open_boundaries(reader, node_lookup)
        land_boundaries = _read_land_boundaries(reader, node_lookup)

    return MeshContents(
        header=header,
        nodes=nodes,
        elements=elements,
        open_boundaries=open_boundaries,
        land_boundaries=land_boundaries,
        node_lookup=node_lookup,
        element_lookup=element_lookup,
    )


def _format_segment(code: int, segment: BoundarySegment, decimals: int) -> str:
    fields = []
    for name, value in zip(field_layout(code), segment.values(code)):
        if name in NODE_FIELDS:
            fields.append(f"{value:11d}")
        else:
            fields.append(f"{value:16.{decimals}f}")
    return " ".join(fields)


def format_lines(mesh, config: Dict[str, Any]):
    """Yield the lines of the ADCIRC representation of ``mesh``."""
    output = config["output"]
    decimals = output["geographic_decimals"] if mesh.is_latlon else output["projected_decimals"]
    attribute_decimals = output["attribute_decimals"]

    yield mesh.header
    yield f"{mesh.num_elements:11d} {mesh.num_nodes:11d}"

    for n in mesh.nodes:
        yield f"{n.id:11d} {n.x:16.{decimals}f} {n.y:16.{decimals}f} {n.z:16.{decimals}f}"

    for e in mesh.elements:
        yield f"{e.id:11d} {e.n:3d} " + " ".join(f"{n:11d}" for n in e.nodes)

    yield f"{mesh.num_open_boundaries:11d}"
    yield f"{mesh.total_open_boundary_nodes():11d}"
    for b in mesh.open_boundaries:
        yield f"{b.length:11d}"
        for segment in b.segments:
            yield _format_segment(OPEN_BOUNDARY_CODE, segment, attribute_decimals)

    yield f"{mesh.num_land_boundaries:11d}"
    yield f"{mesh.total_land_boundary_nodes():11d}"
    for b in mesh.land_boundaries:
        yield f"{b.length:11d} {b.code:11d}"
        for segment in b.segments:
            yield _format_segment(b.code, segment, attribute_decimals)


def write(mesh, filename: str, config: Dict[str, Any]) -> None:
    """Encode ``mesh`` as an ADCIRC ASCII mesh. Counts come from the live collections."""
    mesh.check_complete()
    with open(filename, 'w') as file:
        for line in format_lines(mesh, config):
            file.write(line + "\n")
    logger.info(f"Mesh written to {filename} (ADCIRC ASCII)")
