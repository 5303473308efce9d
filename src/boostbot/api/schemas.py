"""Pydantic schemas for API responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    """Acknowledgement returned for every well-formed webhook delivery."""

    status: str = "ok"


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Response model for overall health check."""

    status: str = Field(..., description="Overall status (healthy/unhealthy)")
    uptime_seconds: float
    events_processed: int
    sessions_in_flight: int
    test_mode: bool


class UptimeResponse(BaseModel):
    """Response model for uptime."""

    uptime: str = Field(..., description="Human readable uptime, e.g. 1d 2h 3m 4s")
    uptime_seconds: float
    started_at: datetime
    timestamp: datetime


class LastActivityResponse(BaseModel):
    """Summary of the most recent webhook delivery."""

    timestamp: Optional[datetime] = None
    message: Optional[str] = None
    action: Optional[int] = None
    amount: Optional[int] = Field(None, description="Boost total in sats")
    sender: Optional[str] = None
    podcast: Optional[str] = None
    episode: Optional[str] = None
    time_ago: str = "No activity"


# ============================================================================
# Session Schemas
# ============================================================================

class SessionSummary(BaseModel):
    """Response model for one in-flight boost session."""

    session_key: str
    state: str
    sats: int = Field(..., description="Boost total in sats")
    winning_split_sats: int
    split_count: int
    armed: bool
    seconds_until_fire: Optional[float] = None


class SessionListResponse(BaseModel):
    """Response model for in-flight session list."""

    sessions: List[SessionSummary]
    total: int
