"""
Config cache for the cluster and instance configuration documents.

The getters are not memoized: every call fetches again and the slot holds
the latest successful fetch. A failed fetch leaves the previous document in
place and raises to the caller. Note the topology resolver memoizes while
these getters do not.
"""

from typing import Optional

from dashboard.api.client import ClusterApiClient
from dashboard.store.state import StoreState
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


class ConfigCache:
    """Fetches configuration documents and commits them to the store state."""

    def __init__(self, client: ClusterApiClient, state: StoreState):
        self._client = client
        self._state = state

    async def get_cluster_config(self) -> str:
        document = await self._client.get_cluster_config()
        self._state.set_config("cluster", document)
        return document

    async def get_instance_config(self) -> str:
        document = await self._client.get_instance_config()
        self._state.set_config("instance", document)
        return document

    @property
    def cluster_config(self) -> Optional[str]:
        """Last fetched cluster document, or None."""
        return self._state.config("cluster")

    @property
    def instance_config(self) -> Optional[str]:
        """Last fetched instance document, or None."""
        return self._state.config("instance")
