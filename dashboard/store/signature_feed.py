"""
Signature feed consumer.

Pushes every signature from the feed into the store's ring buffer, either
from the one-shot history endpoint or from the live event stream.
"""

import asyncio
import json
from typing import List, Optional

from pydantic import ValidationError

from dashboard.api.client import ClusterApiClient
from dashboard.domain import Signature
from dashboard.store.state import StoreState
from dashboard.store.streams import StreamHandle
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


class SignatureFeed:
    """Feeds signatures into StoreState.append_signature."""

    def __init__(self, client: ClusterApiClient, state: StoreState):
        self._client = client
        self._state = state
        self._handle: Optional[StreamHandle] = None

    async def load_history(self) -> List[Signature]:
        """
        Fetch the full history (oldest first) and append it in order.

        Only the newest entries survive in the buffer. Errors propagate.
        """
        signatures = await self._client.get_signatures()
        for signature in signatures:
            self._state.append_signature(signature)
        return self._state.signatures.recent(self._state.signatures.capacity)

    def follow(self) -> StreamHandle:
        """Start consuming the signature stream. Idempotent while the stream runs."""
        if self._handle is not None and self._handle.running:
            return self._handle
        self._handle = StreamHandle.spawn("signatures", self._consume)
        return self._handle

    async def _consume(self, handle: StreamHandle) -> None:
        try:
            async for message in self._client.stream_signatures():
                handle.received += 1
                try:
                    signature = Signature.model_validate(json.loads(message))
                except (json.JSONDecodeError, ValidationError) as e:
                    handle.dropped += 1
                    logger.warning(f"Dropped malformed signature message: {e}")
                    continue
                self._state.append_signature(signature)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            handle.error = e
            logger.error(f"Signature stream failed: {e}")

    async def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            await self._handle.wait()
            self._handle = None
