"""
Event aggregation.

Merges the per-node event logs into one feed ordered by time. Recomputed
on every read: O(total events) per call.
"""

from typing import List

from dashboard.domain import EventData
from dashboard.store.queries import NodeMapping


def aggregate_events(nodes: NodeMapping) -> List[EventData]:
    """
    Concatenate every node's events and sort them by `time`, ascending.

    The sort is stable: events with equal timestamps keep node order, then
    their order within the node's log.
    """
    merged: List[EventData] = []
    for data in nodes.values():
        if data is None or not data.events:
            continue
        merged.extend(data.events)
    merged.sort(key=lambda event: event.time)
    return merged
