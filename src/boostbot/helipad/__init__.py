"""Helipad webhook payloads, normalization and entry filters."""

from .filters import BoostFilter
from .models import HelipadWebhookPayload, PaymentInfo, PaymentSplitEvent
from .normalize import normalize_payment, parse_tlv

__all__ = [
    "BoostFilter",
    "HelipadWebhookPayload",
    "PaymentInfo",
    "PaymentSplitEvent",
    "normalize_payment",
    "parse_tlv",
]
