"""
Cluster topology resolver.

The node list is fetched once and kept for the life of the process.
Callers that arrive while the first fetch is in flight share its result
instead of issuing their own request.
"""

import asyncio
from typing import Optional

from dashboard.api.client import ClusterApiClient
from dashboard.domain import ClusterInfo
from dashboard.store.state import StoreState
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


class TopologyResolver:
    """Resolves the cluster topology once, sharing the pending fetch with late joiners."""

    def __init__(self, client: ClusterApiClient, state: StoreState):
        self._client = client
        self._state = state
        self._pending: Optional[asyncio.Future] = None
        self.fetch_count = 0

    @property
    def cached(self) -> Optional[ClusterInfo]:
        return self._state.cluster_info

    async def resolve(self) -> ClusterInfo:
        """
        Return the topology, fetching it if it is not known yet.

        A failed fetch raises to every waiting caller and leaves the cache
        empty, so the next call retries.
        """
        info = self._state.cluster_info
        if info is not None:
            return info

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._fetch())

        # shield: a cancelled caller must not cancel the fetch other callers wait on
        return await asyncio.shield(self._pending)

    async def _fetch(self) -> ClusterInfo:
        self.fetch_count += 1
        try:
            info = await self._client.get_cluster_info()
            info = self._state.set_cluster_info(info)
            logger.info(f"Resolved cluster topology: nodes={info.node_ids}")
            return info
        finally:
            self._pending = None
