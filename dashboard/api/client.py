"""
Cluster API Client for the dashboard.

Talks to the dashboard service that fronts the cluster:
1. Topology        - GET /cluster-info
2. Node state      - GET /node-state?id={id} (one-shot or event stream)
3. Configuration   - GET /config/cluster, GET /config/instance
4. Signature feed  - event stream (or one-shot history) at DASHBOARD_SIGNATURES_PATH
5. Node control    - GET /node-stop, /node-start, /network-sever
"""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from dashboard.core.constants import (
    DASHBOARD_URL,
    HTTP_TIMEOUT,
    STREAM_TIMEOUT,
    STREAM_MAX_RETRIES,
    STREAM_BACKOFF_MIN,
    STREAM_BACKOFF_MAX,
    SIGNATURES_PATH,
    CLUSTER_INFO_PATH,
    NODE_STATE_PATH,
    CLUSTER_CONFIG_PATH,
    INSTANCE_CONFIG_PATH,
    NODE_STOP_PATH,
    NODE_START_PATH,
    NETWORK_SEVER_PATH,
)
from dashboard.domain import ClusterInfo, NodeData, Signature, normalize_node_id
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


class StreamExhausted(Exception):
    """Raised when a stream keeps closing without delivering any event."""
    pass


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Yield the data of each server-sent event.

    Multi-line data fields are joined with newlines. Comments and the
    event/id/retry fields are ignored. An event left incomplete at the end
    of the stream is discarded.
    """
    buffer: List[str] = []
    async for line in lines:
        if not line:
            if buffer:
                yield "\n".join(buffer)
                buffer = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field != "data":
            continue
        if value.startswith(" "):
            value = value[1:]
        buffer.append(value)


class ClusterApiClient:
    """Async client for the dashboard service endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT,
        stream_timeout: float = STREAM_TIMEOUT,
        max_retries: int = STREAM_MAX_RETRIES,
        backoff_min: float = STREAM_BACKOFF_MIN,
        backoff_max: float = STREAM_BACKOFF_MAX,
        signatures_path: str = SIGNATURES_PATH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or DASHBOARD_URL).rstrip("/")
        self.timeout = timeout
        self.stream_timeout = stream_timeout
        self.max_retries = max_retries
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self.signatures_path = signatures_path
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        response = await self._get_client().get(path, params=params)
        response.raise_for_status()
        return response

    async def get_cluster_info(self) -> ClusterInfo:
        """
        Fetch the cluster topology.

        GET /cluster-info
        """
        logger.info("[ClusterApiClient] Fetching cluster info")

        try:
            response = await self._get(CLUSTER_INFO_PATH)
            info = ClusterInfo.model_validate(response.json())
            logger.info(f"[ClusterApiClient] Cluster info fetched: {len(info.nodes)} nodes")
            return info
        except httpx.HTTPStatusError as e:
            logger.error(f"[ClusterApiClient] Cluster info fetch failed: HTTP {e.response.status_code}")
            raise
        except Exception as e:
            logger.error(f"[ClusterApiClient] Cluster info fetch error: {e}")
            raise

    async def get_node_state(self, node_id: Any) -> Optional[NodeData]:
        """
        Fetch the current state report of one node.

        GET /node-state?id={id}

        A JSON null body means the dashboard service could not reach the node.
        """
        node_id = normalize_node_id(node_id)
        response = await self._get(NODE_STATE_PATH, params={"id": node_id})
        payload = response.json()
        if payload is None:
            return None
        return NodeData.model_validate(payload)

    async def get_config(self, path: str) -> str:
        """Fetch a configuration document as raw text."""
        logger.info(f"[ClusterApiClient] Fetching config: {path}")

        try:
            response = await self._get(path)
            return response.text
        except httpx.HTTPStatusError as e:
            logger.error(f"[ClusterApiClient] Config fetch failed ({path}): HTTP {e.response.status_code}")
            raise
        except Exception as e:
            logger.error(f"[ClusterApiClient] Config fetch error ({path}): {e}")
            raise

    async def get_cluster_config(self) -> str:
        return await self.get_config(CLUSTER_CONFIG_PATH)

    async def get_instance_config(self) -> str:
        return await self.get_config(INSTANCE_CONFIG_PATH)

    async def get_signatures(self) -> List[Signature]:
        """
        Fetch the full signature history, oldest first.

        GET {signatures_path}
        """
        response = await self._get(self.signatures_path)
        payload = response.json() or []
        signatures = [Signature.model_validate(item) for item in payload]
        logger.info(f"[ClusterApiClient] Fetched {len(signatures)} signatures")
        return signatures

    async def stop_node(self, node_id: Any) -> None:
        """GET /node-stop?id={id}"""
        await self._control(NODE_STOP_PATH, {"id": normalize_node_id(node_id)})

    async def start_node(self, node_id: Any) -> None:
        """GET /node-start?id={id}"""
        await self._control(NODE_START_PATH, {"id": normalize_node_id(node_id)})

    async def sever_network(self, node_id: Any, other: Any) -> None:
        """GET /network-sever?id={id}&other={other}: node `id` starts refusing traffic from `other`."""
        await self._control(
            NETWORK_SEVER_PATH,
            {"id": normalize_node_id(node_id), "other": normalize_node_id(other)},
        )

    async def _control(self, path: str, params: Dict[str, Any]) -> None:
        """
        Fire a node control action.

        The service answers some actions with a redirect back to its own page
        (301 to /dashboard); that counts as success and is not followed.
        """
        logger.info(f"[ClusterApiClient] Node control {path} {params}")
        try:
            response = await self._get_client().get(path, params=params)
            if not response.is_redirect:
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"[ClusterApiClient] Node control {path} failed: HTTP {e.response.status_code}")
            raise

    async def _open_stream(self, path: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        """
        Open a streaming response with tenacity retry logic.
        Exponential backoff; raises RetryError once the attempts are exhausted.
        """
        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_min, min=self.backoff_min, max=self.backoff_max),
            retry=retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError)),
            before_sleep=lambda retry_state: logger.warning(
                f"[ClusterApiClient] Stream connect to {path} failed, retrying in "
                f"{retry_state.next_action.sleep:.1f}s... "
                f"(attempt {retry_state.attempt_number}/{self.max_retries})"
            ),
        )
        async def _do_connect():
            client = self._get_client()
            response = await client.send(
                client.build_request(
                    "GET",
                    path,
                    params=params,
                    headers={"Accept": "text/event-stream"},
                    timeout=self.stream_timeout,
                ),
                stream=True,
            )
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError:
                await response.aclose()
                raise
            return response

        return await _do_connect()

    async def stream(self, path: str, params: Optional[Dict[str, Any]] = None) -> AsyncIterator[str]:
        """
        Yield event data from a server-sent event stream, forever.

        A dropped or finished stream is reopened. Connection failures go
        through the retry policy of `_open_stream`; when it gives up the
        RetryError propagates to the consumer. Sessions that end without
        delivering an event count against the same attempt budget and raise
        StreamExhausted once it is spent.
        """
        empty_sessions = 0
        while True:
            response = await self._open_stream(path, params)
            logger.info(f"[ClusterApiClient] Stream open: {path} {params or ''}")

            delivered = False
            try:
                async for data in iter_sse_data(response.aiter_lines()):
                    delivered = True
                    yield data
            except httpx.TransportError as e:
                logger.warning(f"[ClusterApiClient] Stream dropped: {path}: {e}")
            finally:
                await response.aclose()

            empty_sessions = 0 if delivered else empty_sessions + 1
            if empty_sessions >= self.max_retries:
                logger.error(
                    f"[ClusterApiClient] Stream {path} closed {empty_sessions} times without data, giving up"
                )
                raise StreamExhausted(f"{path}: {empty_sessions} empty sessions in a row")

            logger.info(f"[ClusterApiClient] Stream ended: {path}, reconnecting")
            await asyncio.sleep(self.backoff_min)

    def stream_node_state(self, node_id: Any) -> AsyncIterator[str]:
        """Event stream of JSON-encoded node state reports."""
        return self.stream(NODE_STATE_PATH, params={"id": normalize_node_id(node_id)})

    def stream_signatures(self) -> AsyncIterator[str]:
        """Event stream of JSON-encoded signatures."""
        return self.stream(self.signatures_path)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
