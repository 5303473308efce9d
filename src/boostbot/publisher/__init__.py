"""Publishers delivering finalized boosts to Nostr."""

from .interface import PublishReport, PublisherInterface, RelayResult, ZapDetails
from .mock import LoggingPublisher
from .nostr import NostrSigner, encode_nevent, npub_to_hex
from .relay import RelayPublisher

__all__ = [
    "LoggingPublisher",
    "NostrSigner",
    "PublishReport",
    "PublisherInterface",
    "RelayPublisher",
    "RelayResult",
    "ZapDetails",
    "encode_nevent",
    "npub_to_hex",
]
