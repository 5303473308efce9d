"""In-flight boost session listing."""

from fastapi import APIRouter, Depends

from ...boost.aggregator import BoostAggregator
from ..dependencies import get_aggregator
from ..schemas import SessionListResponse, SessionSummary

router = APIRouter()


@router.get(
    "/sessions",
    response_model=SessionListResponse,
    summary="List in-flight boost sessions",
    description="Sessions still collecting splits or waiting for their finalize timer",
)
async def list_sessions(
    aggregator: BoostAggregator = Depends(get_aggregator),
) -> SessionListResponse:
    """List in-flight boost sessions."""
    sessions = [SessionSummary(**summary) for summary in aggregator.describe_sessions()]
    return SessionListResponse(sessions=sessions, total=len(sessions))
