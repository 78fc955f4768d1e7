# backend/farewelly/routes/v1/realtime.py
"""
Realtime relay - API v1

Endpoints:
    POST /realtime/events - Publish a client event to a channel
"""

import logging

from fastapi import APIRouter, Body, Depends, Request

from ...api.dependencies import get_current_profile
from ...api.dependencies.services import get_realtime_relay_service
from ...models.user import UserProfile
from ...schemas.base_responses import ApiResponse
from ...schemas.realtime import RelayEventData, RelayEventRequest
from ...services.realtime_service import RealtimeRelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime-v1"])


@router.post("/realtime/events", response_model=ApiResponse[RelayEventData])
async def relay_event(
    request: Request,
    payload: RelayEventRequest = Body(...),
    profile: UserProfile = Depends(get_current_profile),
    service: RealtimeRelayService = Depends(get_realtime_relay_service),
) -> ApiResponse[RelayEventData]:
    """Relay a typing, presence or chat event after budget and channel checks."""
    result = await service.relay(
        profile,
        channel=payload.channel,
        event=payload.event,
        data=payload.data,
        socket_id=payload.socket_id,
        session_id=request.headers.get("X-Session-ID"),
    )
    return ApiResponse(data=RelayEventData(**result), message="Event sent successfully")
