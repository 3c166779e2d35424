"""
Node state synchronizer.

Keeps the per-node cache fresh with one of two strategies:
- pull: one request per node, a failure commits a None marker for it
- push: one durable event stream per node, every message is committed

All writes go through StoreState.update_node, which drops no-op writes.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from dashboard.api.client import ClusterApiClient
from dashboard.core.constants import SYNC_MODE, SYNC_MODES
from dashboard.domain import NodeData, normalize_node_id
from dashboard.store.state import StoreState
from dashboard.store.streams import StreamHandle
from dashboard.store.topology import TopologyResolver
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


def decode_node_data(message: str) -> Optional[NodeData]:
    """Decode one stream message. A JSON null decodes to None."""
    payload = json.loads(message)
    if payload is None:
        return None
    return NodeData.model_validate(payload)


class NodeSynchronizer:
    """Drives node state sync in pull or push mode."""

    def __init__(
        self,
        client: ClusterApiClient,
        state: StoreState,
        resolver: TopologyResolver,
        mode: str = SYNC_MODE,
    ):
        if mode not in SYNC_MODES:
            raise ValueError(f"Unknown sync mode '{mode}', expected one of {SYNC_MODES}")
        self._client = client
        self._state = state
        self._resolver = resolver
        self.mode = mode
        self._streams: Dict[int, StreamHandle] = {}

    # --- pull ---

    async def sync_node_once(self, node_id: Any) -> Optional[NodeData]:
        """
        Fetch one node's state and commit it.

        Fetch and decode failures are not raised: the node is committed as
        None (unreachable) instead. Topology resolution errors do propagate.
        """
        node_id = normalize_node_id(node_id)
        await self._resolver.resolve()

        self._state.mark_syncing(node_id)
        try:
            data = await self._client.get_node_state(node_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Node {node_id} state fetch failed, marking unreachable: {e}")
            data = None
        except asyncio.CancelledError:
            self._state.clear_syncing(node_id)
            raise

        self._state.update_node(node_id, data)
        return data

    async def sync_all_once(self) -> None:
        """Pull every known node concurrently and wait for all of them."""
        info = await self._resolver.resolve()
        await asyncio.gather(*(self.sync_node_once(node_id) for node_id in info.node_ids))

    # --- push ---

    async def sync_node_continuously(self, node_id: Any) -> StreamHandle:
        """
        Open the state stream of one node and commit every message.

        Returns the handle of the stream. A node that already has a live
        stream gets its existing handle back.
        """
        node_id = normalize_node_id(node_id)
        await self._resolver.resolve()

        existing = self._streams.get(node_id)
        if existing is not None and existing.running:
            return existing

        self._state.mark_syncing(node_id)
        handle = StreamHandle.spawn(
            f"node-state:{node_id}",
            lambda h: self._follow_node(node_id, h),
        )
        self._streams[node_id] = handle
        return handle

    async def sync_all_continuously(self) -> List[StreamHandle]:
        """Open a stream per known node. Returns once all are started."""
        info = await self._resolver.resolve()
        handles = await asyncio.gather(
            *(self.sync_node_continuously(node_id) for node_id in info.node_ids)
        )
        return list(handles)

    async def _follow_node(self, node_id: int, handle: StreamHandle) -> None:
        try:
            async for message in self._client.stream_node_state(node_id):
                handle.received += 1
                try:
                    data = decode_node_data(message)
                except (json.JSONDecodeError, ValidationError) as e:
                    handle.dropped += 1
                    logger.warning(f"Node {node_id}: dropped malformed state message: {e}")
                    continue
                self._state.update_node(node_id, data)
        except asyncio.CancelledError:
            self._state.clear_syncing(node_id)
            raise
        except Exception as e:
            handle.error = e
            logger.error(f"Node {node_id} state stream failed, marking unreachable: {e}")
            self._state.update_node(node_id, None)

    # --- mode dispatch ---

    async def sync_node(self, node_id: Any) -> Optional[StreamHandle]:
        """Sync one node with the configured strategy."""
        if self.mode == "push":
            return await self.sync_node_continuously(node_id)
        await self.sync_node_once(node_id)
        return None

    async def sync_all_nodes(self) -> List[StreamHandle]:
        """
        Sync every known node with the configured strategy.

        Pull mode returns an empty list once every node has been fetched;
        push mode returns the stream handles once every stream is started.
        """
        if self.mode == "push":
            return await self.sync_all_continuously()
        await self.sync_all_once()
        return []

    @property
    def streams(self) -> Dict[int, StreamHandle]:
        return dict(self._streams)

    async def close(self) -> None:
        """Close every node stream and wait for the consumers to finish."""
        handles = list(self._streams.values())
        for handle in handles:
            handle.close()
        for handle in handles:
            await handle.wait()
        self._streams.clear()
