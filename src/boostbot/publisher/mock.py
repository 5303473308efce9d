"""Mock publisher that logs posts instead of sending them."""

import logging
import uuid
from typing import Optional

from .interface import PublishReport, PublisherInterface, RelayResult, ZapDetails

logger = logging.getLogger(__name__)


class LoggingPublisher(PublisherInterface):
    """Publisher for test mode and development without a Nostr key."""

    def __init__(self, relays: list[str] = None):
        """
        Initialize mock publisher.

        Args:
            relays: Relay URLs reported as targets
        """
        self.relays = relays or ["mock://relay"]
        self.published: list[tuple[str, list[list[str]]]] = []
        self.zaps: list[ZapDetails] = []

    async def publish(
        self, content: str, tags: list[list[str]], zap: Optional[ZapDetails] = None
    ) -> PublishReport:
        """Log the post and report success for every relay."""
        logger.info(
            "TEST MODE - Would post to relays",
            extra={
                "content": content,
                "tags": tags,
                "relays": self.relays,
                "zap_msat": zap.amount_msat if zap else None,
            },
        )
        self.published.append((content, tags))
        if zap is not None:
            self.zaps.append(zap)
        return PublishReport(
            event_id=uuid.uuid4().hex,
            results=[RelayResult(relay=r, success=True, message="mock") for r in self.relays],
        )

    async def close(self) -> None:
        """Nothing to release."""
        pass
