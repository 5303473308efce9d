"""Abstract interface for boost publishers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class RelayResult:
    """Outcome of delivering an event to one relay."""

    relay: str
    success: bool
    message: Optional[str] = None


@dataclass
class ZapDetails:
    """Payment details used to publish a zap request and receipt for a post."""

    amount_msat: int
    message: str = ""
    created_at: Optional[int] = None
    payment_hash: Optional[str] = None


@dataclass
class PublishReport:
    """Outcome of one publish call across all relays."""

    event_id: Optional[str] = None
    results: list[RelayResult] = field(default_factory=list)
    zap_request_id: Optional[str] = None
    zap_receipt_id: Optional[str] = None

    @property
    def success(self) -> bool:
        """True if at least one relay accepted the event."""
        return any(r.success for r in self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "event_id": self.event_id,
            "zap_receipt_id": self.zap_receipt_id,
            "successful": self.successful,
            "failed": self.failed,
            "results": [
                {"relay": r.relay, "success": r.success, "message": r.message} for r in self.results
            ],
        }


class PublisherInterface(ABC):
    """Abstract base class for publishing finalized boosts."""

    @abstractmethod
    async def publish(
        self, content: str, tags: list[list[str]], zap: Optional[ZapDetails] = None
    ) -> PublishReport:
        """
        Publish a post.

        Args:
            content: Post text
            tags: Structured metadata tags
            zap: Payment details; when set a zap request and receipt precede the post

        Returns:
            Per-target delivery report
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        pass
