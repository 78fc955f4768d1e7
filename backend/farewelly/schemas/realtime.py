from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ._strict_base import StrictRequestModel


class RelayEventRequest(StrictRequestModel):
    channel: str = Field(..., min_length=1, max_length=200)
    event: str = Field(..., min_length=1, max_length=100)
    data: Dict[str, Any]
    socket_id: Optional[str] = Field(default=None, max_length=100)


class RelayEventData(BaseModel):
    channel: str
    event: str
    timestamp: str
