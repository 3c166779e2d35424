"""
ClusterStore - the surface the dashboard views talk to.

Views read through the getters and trigger work through the async actions;
they never touch StoreState directly. One store is built per process and
handed to whoever needs it.
"""

from typing import Any, Callable, Dict, List, Optional

from dashboard.api.client import ClusterApiClient
from dashboard.core.constants import SIGNATURE_CAPACITY, SYNC_MODE
from dashboard.domain import ClusterInfo, EventData, NodeData, NodeStatus, Signature
from dashboard.store.config_cache import ConfigCache
from dashboard.store.events import aggregate_events
from dashboard.store.node_sync import NodeSynchronizer
from dashboard.store.queries import get_node, get_peers, has_nodes, is_link_active
from dashboard.store.signature_feed import SignatureFeed
from dashboard.store.state import ChangeListener, StoreState
from dashboard.store.streams import StreamHandle
from dashboard.store.topology import TopologyResolver
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


class ClusterStore:
    """
    Client-side cache of cluster state.

    Usage:
        async with ClusterStore(ClusterApiClient("http://dashboard")) as store:
            await store.sync_all_nodes()
            store.is_link_active(1, 2)
    """

    def __init__(
        self,
        client: Optional[ClusterApiClient] = None,
        mode: str = SYNC_MODE,
        signature_capacity: int = SIGNATURE_CAPACITY,
        state: Optional[StoreState] = None,
    ):
        self.client = client or ClusterApiClient()
        self.state = state or StoreState(signature_capacity=signature_capacity)
        self.resolver = TopologyResolver(self.client, self.state)
        self.configs = ConfigCache(self.client, self.state)
        self.sync = NodeSynchronizer(self.client, self.state, self.resolver, mode=mode)
        self.signature_feed = SignatureFeed(self.client, self.state)

    @property
    def mode(self) -> str:
        return self.sync.mode

    # --- actions ---

    async def resolve_cluster_info(self) -> ClusterInfo:
        return await self.resolver.resolve()

    async def sync_node_once(self, node_id: Any) -> Optional[NodeData]:
        return await self.sync.sync_node_once(node_id)

    async def sync_node_continuously(self, node_id: Any) -> StreamHandle:
        return await self.sync.sync_node_continuously(node_id)

    async def sync_node(self, node_id: Any) -> Optional[StreamHandle]:
        return await self.sync.sync_node(node_id)

    async def sync_all_nodes(self) -> List[StreamHandle]:
        return await self.sync.sync_all_nodes()

    async def get_cluster_config(self) -> str:
        return await self.configs.get_cluster_config()

    async def get_instance_config(self) -> str:
        return await self.configs.get_instance_config()

    async def load_signature_history(self) -> List[Signature]:
        return await self.signature_feed.load_history()

    def follow_signatures(self) -> StreamHandle:
        return self.signature_feed.follow()

    def append_signature(self, signature: Signature) -> None:
        self.state.append_signature(signature)

    async def stop_node(self, node_id: Any) -> None:
        await self.client.stop_node(node_id)
        await self._refresh_after_control(node_id)

    async def start_node(self, node_id: Any) -> None:
        await self.client.start_node(node_id)
        await self._refresh_after_control(node_id)

    async def sever_network(self, node_id: Any, other: Any) -> None:
        await self.client.sever_network(node_id, other)
        await self._refresh_after_control(node_id)

    async def _refresh_after_control(self, node_id: Any) -> None:
        # push mode picks the change up from the stream
        if self.mode == "pull":
            await self.sync.sync_node_once(node_id)

    # --- getters ---

    @property
    def cluster_info(self) -> Optional[ClusterInfo]:
        return self.state.cluster_info

    @property
    def nodes(self) -> Dict[int, Optional[NodeData]]:
        return self.state.nodes

    @property
    def has_nodes(self) -> bool:
        return has_nodes(self.state.node_view())

    def get_node(self, node_id: Any) -> Optional[NodeData]:
        return get_node(self.state.node_view(), node_id)

    def get_peers(self, node_id: Any) -> List[NodeData]:
        return get_peers(self.state.node_view(), node_id)

    def is_link_active(self, to: Any, from_: Any) -> bool:
        return is_link_active(self.state.node_view(), to, from_)

    def node_status(self, node_id: Any) -> NodeStatus:
        return self.state.node_status(node_id)

    def get_events(self) -> List[EventData]:
        return aggregate_events(self.state.node_view())

    def get_recent_signatures(self, n: int) -> List[Signature]:
        return self.state.signatures.recent(n)

    @property
    def cluster_config(self) -> Optional[str]:
        return self.configs.cluster_config

    @property
    def instance_config(self) -> Optional[str]:
        return self.configs.instance_config

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        return self.state.subscribe(listener)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-serializable view of everything the store holds."""
        info = self.state.cluster_info
        return {
            "version": self.state.version,
            "mode": self.mode,
            "cluster_info": info.model_dump() if info is not None else None,
            "nodes": {
                str(node_id): data.model_dump() if data is not None else None
                for node_id, data in self.state.node_view().items()
            },
            "node_status": {
                str(node_id): self.state.node_status(node_id).value
                for node_id in (info.node_ids if info is not None else self.state.node_view())
            },
            "events": [event.model_dump() for event in self.get_events()],
            "signatures": [
                signature.model_dump()
                for signature in self.state.signatures.recent(self.state.signatures.capacity)
            ],
            "config": {
                "cluster": self.cluster_config,
                "instance": self.instance_config,
            },
        }

    # --- lifecycle ---

    async def aclose(self) -> None:
        """Close every stream and the HTTP client."""
        await self.sync.close()
        await self.signature_feed.close()
        await self.client.aclose()
        logger.info("ClusterStore closed")

    async def __aenter__(self) -> "ClusterStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
