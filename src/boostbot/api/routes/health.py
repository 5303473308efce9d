"""Health, uptime and last-activity endpoints."""

import time
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends

from ...boost.aggregator import BoostAggregator
from ...config import Config
from ...constants import action_name
from ...helipad.models import PaymentSplitEvent
from ..dependencies import get_aggregator, get_config
from ..schemas import HealthCheckResponse, LastActivityResponse, UptimeResponse

router = APIRouter()

# Track application start time
_start_time = time.time()
_events_processed = 0
_last_activity: dict[str, Any] = {}


def record_activity(event: PaymentSplitEvent) -> None:
    """Count a webhook delivery and remember it as the last activity."""
    global _events_processed, _last_activity
    _events_processed += 1

    activity = (
        f"💰 {action_name(event.action)}: {event.sats} sats from "
        f"{event.sender_label or 'Unknown'} → {event.show_name or 'Unknown'}"
    )
    if event.message:
        snippet = event.message[:50] + ("..." if len(event.message) > 50 else "")
        activity += f' | "{snippet}"'

    _last_activity = {
        "timestamp": datetime.now(timezone.utc),
        "message": activity,
        "action": event.action,
        "amount": event.sats,
        "sender": event.sender_label,
        "podcast": event.show_name,
        "episode": event.episode_name,
    }


def format_duration(seconds: float) -> str:
    """Format seconds as ``1d 2h 3m 4s``, dropping leading zero units."""
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if days or hours:
        parts.append(f"{hours}h")
    if days or hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")
    return " ".join(parts)


def time_ago(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Coarse relative age of a timestamp, e.g. ``5m ago``."""
    if timestamp is None:
        return "No activity"
    now = now or datetime.now(timezone.utc)
    diff = (now - timestamp).total_seconds()
    if diff >= 86400:
        return f"{int(diff // 86400)}d ago"
    if diff >= 3600:
        return f"{int(diff // 3600)}h ago"
    if diff >= 60:
        return f"{int(diff // 60)}m ago"
    return "Just now"


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Overall health check",
    description="Check that the webhook receiver is running",
)
async def health_check(
    aggregator: BoostAggregator = Depends(get_aggregator),
    config: Config = Depends(get_config),
) -> HealthCheckResponse:
    """
    Get overall application health status.

    Returns:
        Health check response with uptime and in-flight sessions
    """
    return HealthCheckResponse(
        status="healthy",
        uptime_seconds=time.time() - _start_time,
        events_processed=_events_processed,
        sessions_in_flight=len(aggregator.store),
        test_mode=config.test_mode,
    )


@router.get("/uptime", response_model=UptimeResponse, summary="Process uptime")
async def uptime() -> UptimeResponse:
    """Get process start time and uptime."""
    uptime_seconds = time.time() - _start_time
    return UptimeResponse(
        uptime=format_duration(uptime_seconds),
        uptime_seconds=uptime_seconds,
        started_at=datetime.fromtimestamp(_start_time, tz=timezone.utc),
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/last-activity", response_model=LastActivityResponse, summary="Last webhook received")
async def last_activity() -> LastActivityResponse:
    """Get a summary of the most recent webhook delivery."""
    return LastActivityResponse(
        **_last_activity,
        time_ago=time_ago(_last_activity.get("timestamp")),
    )
