from .models import (
    NodeId,
    InvalidNodeId,
    normalize_node_id,
    NodeStatus,
    ClusterNode,
    ClusterInfo,
    EventData,
    NodeData,
    Signature,
)

__all__ = [
    "NodeId",
    "InvalidNodeId",
    "normalize_node_id",
    "NodeStatus",
    "ClusterNode",
    "ClusterInfo",
    "EventData",
    "NodeData",
    "Signature",
]
