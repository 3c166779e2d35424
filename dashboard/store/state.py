"""
StoreState - the single owned state object of the dashboard.

All writes go through the commit methods here. Readers get a copy of the
node mapping and frozen reports, so nothing a getter returns can change
the store, and a value returned by a getter never changes underneath them. Everything runs
on one event loop, so commits never interleave.
"""

from typing import Any, Callable, Dict, List, Optional, Set

from dashboard.core.constants import SIGNATURE_CAPACITY
from dashboard.domain import (
    ClusterInfo,
    NodeData,
    NodeStatus,
    Signature,
    normalize_node_id,
)
from dashboard.store.signatures import SignatureBuffer
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)

CONFIG_SCOPES = ("cluster", "instance")

ChangeListener = Callable[[str, Any], None]


class StoreState:
    """
    Cluster state cache.

    `nodes` maps a normalized node id to its last report, or to None when
    the last sync attempt failed. A missing key means the node was never
    synced.
    """

    def __init__(self, signature_capacity: int = SIGNATURE_CAPACITY):
        self._nodes: Dict[int, Optional[NodeData]] = {}
        self._cluster_info: Optional[ClusterInfo] = None
        self._configs: Dict[str, Optional[str]] = {scope: None for scope in CONFIG_SCOPES}
        self._signatures = SignatureBuffer(signature_capacity)
        self._syncing: Set[int] = set()
        self._listeners: List[ChangeListener] = []
        self.version = 0

    # --- commits ---

    def update_node(self, node_id: Any, data: Optional[NodeData]) -> bool:
        """
        Commit a node report. Returns True if the mapping changed.

        A write whose value equals the stored one is dropped, so consumers
        that diff on the stored object see no change.
        """
        node_id = normalize_node_id(node_id)
        self._syncing.discard(node_id)

        if node_id in self._nodes and _same_node_data(self._nodes[node_id], data):
            logger.debug(f"Node {node_id} unchanged, commit suppressed")
            return False

        self._nodes[node_id] = data
        self._notify("node", node_id)
        return True

    def set_cluster_info(self, info: ClusterInfo) -> ClusterInfo:
        """Commit the topology. The first committed topology is kept for good."""
        if self._cluster_info is not None:
            logger.debug("Cluster info already resolved, keeping the first value")
            return self._cluster_info
        self._cluster_info = info
        self._notify("cluster_info", info)
        return info

    def set_config(self, scope: str, document: str) -> None:
        if scope not in self._configs:
            raise KeyError(f"Unknown config scope '{scope}'")
        self._configs[scope] = document
        self._notify("config", scope)

    def append_signature(self, signature: Signature) -> None:
        self._signatures.append(signature)
        self._notify("signature", signature)

    def mark_syncing(self, node_id: Any) -> None:
        self._syncing.add(normalize_node_id(node_id))

    def clear_syncing(self, node_id: Any) -> None:
        self._syncing.discard(normalize_node_id(node_id))

    # --- reads ---

    @property
    def cluster_info(self) -> Optional[ClusterInfo]:
        return self._cluster_info

    @property
    def nodes(self) -> Dict[int, Optional[NodeData]]:
        """Copy of the node mapping."""
        return dict(self._nodes)

    def node_view(self) -> Dict[int, Optional[NodeData]]:
        """The live mapping, for pure queries that do not keep it."""
        return self._nodes

    def config(self, scope: str) -> Optional[str]:
        if scope not in self._configs:
            raise KeyError(f"Unknown config scope '{scope}'")
        return self._configs[scope]

    @property
    def signatures(self) -> SignatureBuffer:
        return self._signatures

    def node_status(self, node_id: Any) -> NodeStatus:
        node_id = normalize_node_id(node_id)
        if node_id in self._syncing:
            return NodeStatus.SYNCING
        if node_id not in self._nodes:
            return NodeStatus.UNKNOWN
        if self._nodes[node_id] is None:
            return NodeStatus.UNREACHABLE
        return NodeStatus.KNOWN

    # --- change notification ---

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a callback run after every effective commit.

        Returns a function that removes the callback.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        self.version += 1
        for listener in list(self._listeners):
            try:
                listener(key, value)
            except Exception as e:
                logger.error(f"Change listener failed on '{key}': {e}")


def _same_node_data(current: Optional[NodeData], new: Optional[NodeData]) -> bool:
    if current is None or new is None:
        return current is None and new is None
    return current.model_dump() == new.model_dump()
