"""
Dashboard sync runner.

Builds a ClusterStore from the environment and keeps it synced, logging a
one-line summary whenever the state changes. Pull mode re-polls every
DASHBOARD_POLL_INTERVAL seconds; push mode opens one stream per node plus
the signature stream.
"""

import asyncio

from dashboard.api.client import ClusterApiClient
from dashboard.core.constants import DASHBOARD_URL, POLL_INTERVAL, SYNC_MODE
from dashboard.store.store import ClusterStore
from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


def summarize(store: ClusterStore) -> str:
    statuses = {
        node_id: store.node_status(node_id).value
        for node_id in (store.cluster_info.node_ids if store.cluster_info else [])
    }
    return (
        f"v{store.state.version} nodes={statuses} "
        f"events={len(store.get_events())} "
        f"signatures={len(store.get_recent_signatures(store.state.signatures.capacity))}"
    )


async def run(store: ClusterStore, poll_interval: float = POLL_INTERVAL) -> None:
    store.subscribe(lambda key, value: logger.info(f"Changed {key}: {summarize(store)}"))

    info = await store.resolve_cluster_info()
    logger.info(f"Cluster has {len(info.nodes)} nodes, mode={store.mode}")

    if store.mode == "push":
        handles = await store.sync_all_nodes()
        handles.append(store.follow_signatures())
        await asyncio.gather(*(handle.wait() for handle in handles))
        return

    while True:
        await store.sync_all_nodes()
        await asyncio.sleep(poll_interval)


async def main():
    """Entry point for running the sync loop."""
    logger.info("=" * 60)
    logger.info("Dashboard Sync Starting")
    logger.info(f"Service URL: {DASHBOARD_URL}")
    logger.info(f"Mode: {SYNC_MODE}")
    logger.info("=" * 60)

    async with ClusterStore(ClusterApiClient(), mode=SYNC_MODE) as store:
        await run(store)


def cli() -> None:
    """Run `main` until Ctrl-C. The store is closed by the time KeyboardInterrupt lands here."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested")


if __name__ == "__main__":
    cli()
