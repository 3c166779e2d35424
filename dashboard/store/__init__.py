"""
Cluster state store.

Components:
- StoreState: owned state object, single commit surface
- TopologyResolver: fetches the node list once
- ConfigCache: cluster/instance configuration documents
- NodeSynchronizer: pull or push node state sync
- SignatureBuffer / SignatureFeed: rolling signature history
- ClusterStore: the facade views use
"""

from dashboard.store.state import StoreState, ChangeListener, CONFIG_SCOPES
from dashboard.store.signatures import SignatureBuffer
from dashboard.store.streams import StreamHandle
from dashboard.store.topology import TopologyResolver
from dashboard.store.config_cache import ConfigCache
from dashboard.store.node_sync import NodeSynchronizer, decode_node_data
from dashboard.store.signature_feed import SignatureFeed
from dashboard.store.events import aggregate_events
from dashboard.store.queries import get_node, get_peers, has_nodes, is_link_active
from dashboard.store.store import ClusterStore

__all__ = [
    "StoreState",
    "ChangeListener",
    "CONFIG_SCOPES",
    "SignatureBuffer",
    "StreamHandle",
    "TopologyResolver",
    "ConfigCache",
    "NodeSynchronizer",
    "decode_node_data",
    "SignatureFeed",
    "aggregate_events",
    "get_node",
    "get_peers",
    "has_nodes",
    "is_link_active",
    "ClusterStore",
]
