"""
Aquaveo SMS generic mesh format (.2dm).

Only the cards below are used; every other card is skipped::

    MESHNAME "name"
    ND  id x y z
    E3T id n1 n2 n3 [material]
    E4Q id n1 n2 n3 n4 [material]

The format holds no usable boundary information, so decoded meshes always
have zero open and zero land boundaries.
"""

import logging
from typing import Any, Dict

from ..errors import MalformedRecordError
from ..geometry import Element, Node
from .base import MeshContents, lookup_for

logger = logging.getLogger(__name__)

ELEMENT_CARDS = {"E3T": 3, "E4Q": 4}


def _mesh_name(line: str, default: str) -> str:
    name = line.strip()[len("MESHNAME"):].replace('"', "")
    name = " ".join(name.split())
    return name if name else default


def _parse_number(token: str, kind, filename: str, line_number: int, what: str):
    try:
        return kind(token)
    except ValueError:
        raise MalformedRecordError(f"Error reading {what}: '{token}'", filename, line_number) from None


def read(filename: str, config: Dict[str, Any]) -> MeshContents:
    """
    Decode a 2dm mesh.

    Nodes and elements keep the order of their cards in the file. Element
    cards may appear before the node cards they reference.
    """
    header = None
    node_cards = []
    element_cards = []

    with open(filename, 'r') as file:
        for line_number, line in enumerate(file, start=1):
            parts = line.split()
            if not parts:
                continue
            tag = parts[0]
            if tag == "ND":
                node_cards.append((line_number, parts))
            elif tag in ELEMENT_CARDS:
                element_cards.append((line_number, parts))
            elif tag == "MESHNAME" and header is None:
                header = _mesh_name(line, config["mesh"]["default_name"])

    if header is None:
        header = config["mesh"]["default_name"]

    nodes = []
    for line_number, parts in node_cards:
        if len(parts) < 5:
            raise MalformedRecordError("Node card needs id, x, y and z", filename, line_number)
        nid = _parse_number(parts[1], int, filename, line_number, "node id")
        x, y, z = (_parse_number(p, float, filename, line_number, "node coordinate") for p in parts[2:5])
        nodes.append(Node(nid, x, y, z))
    node_lookup = lookup_for([n.id for n in nodes], "node", filename)

    elements = []
    for line_number, parts in element_cards:
        nv = ELEMENT_CARDS[parts[0]]
        if len(parts) < 2 + nv:
            raise MalformedRecordError(f"{parts[0]} card needs an id and {nv} nodes", filename, line_number)
        eid = _parse_number(parts[1], int, filename, line_number, "element id")
        elnodes = tuple(_parse_number(p, int, filename, line_number, "element node") for p in parts[2:2 + nv])
        for n in elnodes:
            if n not in node_lookup:
                raise MalformedRecordError(f"Element {eid} references unknown node {n}", filename, line_number)
        elements.append(Element(eid, elnodes))
    element_lookup = lookup_for([e.id for e in elements], "element", filename)

    return MeshContents(
        header=header,
        nodes=nodes,
        elements=elements,
        node_lookup=node_lookup,
        element_lookup=element_lookup,
    )


def write(mesh, filename: str, config: Dict[str, Any]) -> None:
    """Encode ``mesh`` as a 2dm file: header, element cards, then node cards."""
    mesh.check_complete()
    output = config["output"]
    decimals = output["geographic_decimals"] if mesh.is_latlon else output["projected_decimals"]

    with open(filename, 'w') as file:
        file.write("MESH2D\n")
        file.write(f'MESHNAME "{mesh.header}"\n')
        for e in mesh.elements:
            card = "E3T" if e.is_triangle else "E4Q"
            file.write(f"{card} {e.id} " + " ".join(str(n) for n in e.nodes) + " 1\n")
        for n in mesh.nodes:
            file.write(f"ND {n.id} {n.x:.{decimals}f} {n.y:.{decimals}f} {n.z:.{decimals}f}\n")
    logger.info(f"Mesh written to {filename} (2dm)")
