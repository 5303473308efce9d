"""Helipad webhook receiver."""

import logging

from fastapi import APIRouter, Depends

from ...boost.aggregator import BoostAggregator
from ...helipad import HelipadWebhookPayload, normalize_payment
from ..dependencies import get_aggregator
from ..schemas import WebhookAck
from .health import record_activity

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/helipad-webhook",
    response_model=WebhookAck,
    summary="Receive a Helipad payment",
    description="Accepts one payment split. The response does not reveal whether it was posted.",
)
async def helipad_webhook(
    payload: HelipadWebhookPayload,
    aggregator: BoostAggregator = Depends(get_aggregator),
) -> WebhookAck:
    """
    Receive one Helipad payment split.

    Args:
        payload: Webhook body
        aggregator: Boost aggregator instance

    Returns:
        Acknowledgement
    """
    event = normalize_payment(payload)
    logger.info(
        "Received Helipad webhook",
        extra={
            "action": event.action,
            "sats": event.sats,
            "split_sats": event.split_sats,
            "sender": event.sender_label,
            "podcast": event.show_name,
            "episode": event.episode_name,
        },
    )
    record_activity(event)

    result = await aggregator.handle_event(event)
    logger.debug(f"Webhook processed: {result.value}")
    return WebhookAck(status="ok")
