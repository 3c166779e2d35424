"""
Relationship queries over a node mapping.

Pure functions: no I/O, no mutation. Ids are normalized before any
comparison, so "2" and 2 always name the same node.
"""

from typing import Any, List, Mapping, Optional

from dashboard.domain import NodeData, normalize_node_id

NodeMapping = Mapping[int, Optional[NodeData]]


def get_node(nodes: NodeMapping, node_id: Any) -> Optional[NodeData]:
    return nodes.get(normalize_node_id(node_id))


def has_nodes(nodes: NodeMapping) -> bool:
    return len(nodes) > 0


def get_peers(nodes: NodeMapping, node_id: Any) -> List[NodeData]:
    """All known node reports except the one for `node_id`. Failed syncs are skipped."""
    node_id = normalize_node_id(node_id)
    return [
        data for key, data in nodes.items()
        if key != node_id and data is not None
    ]


def is_link_active(nodes: NodeMapping, to: Any, from_: Any) -> bool:
    """
    Whether traffic from `from_` reaches `to`.

    False when `to` blacklists `from_`, or when either end reports "down".
    A node without data neither blacklists nor counts as down.
    """
    to_node = get_node(nodes, to)
    from_node = get_node(nodes, from_)
    from_id = normalize_node_id(from_)

    if to_node is not None and from_id in to_node.blacklist:
        return False
    if to_node is not None and to_node.is_down:
        return False
    if from_node is not None and from_node.is_down:
        return False
    return True
