from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ._strict_base import ORMModel


class NotificationResponse(ORMModel):
    id: str
    type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: datetime


class NotificationListData(BaseModel):
    notifications: List[NotificationResponse] = Field(default_factory=list)
    unread_count: int = 0
