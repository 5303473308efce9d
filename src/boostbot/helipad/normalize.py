"""Normalization of Helipad payloads into PaymentSplitEvent."""

import json
import logging
from typing import Any, Optional, Union

from .models import HelipadWebhookPayload, PaymentSplitEvent

logger = logging.getLogger(__name__)


def parse_tlv(tlv: Optional[Union[str, dict[str, Any]]]) -> dict[str, Any]:
    """
    Parse the TLV record Helipad forwards with a payment.

    Helipad sends the boostagram TLV as a JSON string, some app versions as an
    already decoded object.

    Args:
        tlv: Raw TLV value from the webhook

    Returns:
        Decoded metadata, or an empty dict when absent or unparsable
    """
    if not tlv:
        return {}
    if isinstance(tlv, dict):
        return tlv
    try:
        data = json.loads(tlv)
    except (TypeError, ValueError) as e:
        logger.debug(f"Ignoring unparsable TLV: {e}")
        return {}
    if not isinstance(data, dict):
        logger.debug(f"Ignoring non-object TLV of type {type(data).__name__}")
        return {}
    return data


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def normalize_payment(payload: HelipadWebhookPayload) -> PaymentSplitEvent:
    """
    Build the canonical split event from a webhook payload.

    Args:
        payload: Validated Helipad webhook body

    Returns:
        Immutable PaymentSplitEvent
    """
    info = payload.payment_info
    return PaymentSplitEvent(
        timestamp_seconds=payload.time,
        amount_msat=payload.value_msat,
        total_amount_msat=payload.value_msat_total,
        sender_label=_clean(payload.sender),
        show_name=_clean(payload.podcast),
        episode_name=_clean(payload.episode),
        action=payload.action,
        message=payload.message or None,
        app=_clean(payload.app) or None,
        fee_msat=info.fee_msat if info else None,
        payment_hash=info.payment_hash if info else None,
        remote_podcast=payload.remote_podcast or None,
        remote_episode=payload.remote_episode or None,
        index=payload.index,
        raw_metadata=parse_tlv(payload.tlv),
    )
