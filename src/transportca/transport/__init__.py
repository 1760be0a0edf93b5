"""Transport CA selection for cluster node-to-node traffic."""

from .ca import (
    AuthoritativeCA,
    CASource,
    CustomCAResolver,
    TransportCAReconciler,
    collect_stale_self_signed,
    custom_transport_certs_watch_key,
)

__all__ = [
    "AuthoritativeCA",
    "CASource",
    "CustomCAResolver",
    "TransportCAReconciler",
    "collect_stale_self_signed",
    "custom_transport_certs_watch_key",
]
