"""Transport package initialization."""

from hostpolicy.transport.base import Transport, TransportOptions
from hostpolicy.transport.registry import (
    available_transports,
    create_transport,
    infer_transport,
)

__all__ = [
    "Transport",
    "TransportOptions",
    "available_transports",
    "create_transport",
    "infer_transport",
]
