"""Entry filters applied to payment splits before session aggregation."""

import logging
from typing import Iterable, Optional

from ..constants import ACTION_BOOST
from .models import PaymentSplitEvent

logger = logging.getLogger(__name__)

PLATFORM_FEE_APPS = {"stablekraft"}
METABOOST_MARKER = "metaboost-"


class BoostFilter:
    """
    Decides whether a split is a relayable boost.

    Streams, zero-amount payments, senders outside the allow-list and
    platform-fee metaboosts are dropped before reaching the session store.
    """

    def __init__(self, allowed_senders: Optional[Iterable[str]] = None):
        """
        Initialize the filter.

        Args:
            allowed_senders: Sender labels to relay; empty or None accepts everyone
        """
        self.allowed_senders = {s.strip() for s in (allowed_senders or []) if s and s.strip()}

    def rejection_reason(self, event: PaymentSplitEvent) -> Optional[str]:
        """
        Check an event against every entry filter.

        Args:
            event: Normalized split

        Returns:
            Reason string if the event must be dropped, None if it passes
        """
        if event.action != ACTION_BOOST:
            return "not_boost"
        if event.sats <= 0:
            return "zero_amount"
        if self.allowed_senders and event.sender_label not in self.allowed_senders:
            return "sender_not_allowed"
        if self.is_platform_fee(event):
            return "platform_fee"
        return None

    @staticmethod
    def is_platform_fee(event: PaymentSplitEvent) -> bool:
        """True for StableKraft metaboost platform-fee splits."""
        for value in event.metadata.values():
            if isinstance(value, str) and value.startswith(METABOOST_MARKER):
                return True

        message = (event.message or "").lower()
        if "metaboost" in message:
            return True
        return "platform fee" in message and (event.app or "").lower() in PLATFORM_FEE_APPS
