"""
Node identity for the city grid.

Nodes are addressed by integer ``(x, y)`` coordinates. The textual ``"x-y"``
form is only produced or parsed at the boundary (API payloads, rendering
layer adjacency maps); everything inside the routing engine works on
``NodeId`` tuples.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Tuple, Union

# Canonical form only: ASCII digits, no leading zeros
NODE_ID_PATTERN = re.compile(r"(0|[1-9][0-9]*)-(0|[1-9][0-9]*)", re.ASCII)


class NodeId(NamedTuple):
    """Grid coordinates identifying an intersection."""

    x: int
    y: int

    def __str__(self) -> str:
        return format_node_id(self)


NodeRef = Union[NodeId, Tuple[int, int], str]


def format_node_id(node_id: Tuple[int, int]) -> str:
    """
    Encode a node id in its canonical ``"x-y"`` text form.

    Args:
        node_id: (x, y) pair

    Returns:
        Canonical string id
    """
    x, y = node_id
    return f"{x}-{y}"


def parse_node_id(text: str) -> NodeId:
    """
    Decode a canonical ``"x-y"`` string into a NodeId.

    Args:
        text: String id such as ``"3-5"``

    Returns:
        NodeId

    Raises:
        ValueError: If the text is not two non-negative integers joined by
            ``-`` in canonical form
    """
    match = NODE_ID_PATTERN.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"Invalid node id: {text!r}")

    return NodeId(int(match.group(1)), int(match.group(2)))


def to_node_id(ref: NodeRef) -> NodeId:
    """
    Normalize any accepted node reference to a NodeId.

    Args:
        ref: NodeId, (x, y) tuple or ``"x-y"`` string

    Returns:
        NodeId

    Raises:
        ValueError: If the reference cannot be interpreted
    """
    if isinstance(ref, NodeId):
        return ref
    if isinstance(ref, str):
        return parse_node_id(ref)
    if (
        isinstance(ref, tuple)
        and len(ref) == 2
        and all(isinstance(v, int) and not isinstance(v, bool) for v in ref)
    ):
        return NodeId(int(ref[0]), int(ref[1]))

    raise ValueError(f"Invalid node reference: {ref!r}")


@dataclass(frozen=True)
class GridNode:
    """
    An intersection in the city grid.

    Attributes:
        x: Column index
        y: Row index
    """

    x: int
    y: int

    @property
    def id(self) -> NodeId:
        return NodeId(self.x, self.y)

    @property
    def position(self) -> Tuple[float, float]:
        return (float(self.x), float(self.y))

    def is_signalized(self) -> bool:
        """Intersections where both coordinates are even carry a traffic signal."""
        return self.x % 2 == 0 and self.y % 2 == 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": format_node_id(self.id), "x": self.x, "y": self.y}
