"""HTTP access to the dashboard service."""
from .client import ClusterApiClient, StreamExhausted, iter_sse_data

__all__ = [
    "ClusterApiClient",
    "StreamExhausted",
    "iter_sse_data",
]
