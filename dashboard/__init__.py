"""Client-side state sync for the cluster monitoring dashboard."""

from dashboard.api import ClusterApiClient
from dashboard.domain import (
    ClusterInfo,
    ClusterNode,
    EventData,
    NodeData,
    NodeStatus,
    Signature,
    normalize_node_id,
)
from dashboard.store import ClusterStore, StoreState, StreamHandle

__version__ = "0.1.0"

__all__ = [
    "ClusterApiClient",
    "ClusterInfo",
    "ClusterNode",
    "EventData",
    "NodeData",
    "NodeStatus",
    "Signature",
    "normalize_node_id",
    "ClusterStore",
    "StoreState",
    "StreamHandle",
]
