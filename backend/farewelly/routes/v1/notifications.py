# backend/farewelly/routes/v1/notifications.py
"""
In-app notification inbox - API v1

Endpoints:
    GET /notifications                        - Page through the caller's inbox
    POST /notifications/{notification_id}/read - Mark one notification read
"""

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import Pagination, get_current_profile, get_pagination
from ...api.dependencies.services import get_notification_service
from ...models.user import UserProfile
from ...schemas.base_responses import ApiResponse
from ...schemas.notification import NotificationListData, NotificationResponse
from ...services.notification_service import NotificationService

router = APIRouter(tags=["notifications-v1"])


@router.get("/notifications", response_model=ApiResponse[NotificationListData])
def list_notifications(
    unread_only: bool = Query(False),
    pagination: Pagination = Depends(get_pagination),
    profile: UserProfile = Depends(get_current_profile),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationListData]:
    rows, total, unread = service.list_notifications(
        profile.id, unread_only=unread_only, offset=pagination.offset, limit=pagination.limit
    )
    return ApiResponse(
        data=NotificationListData(
            notifications=[NotificationResponse.model_validate(row) for row in rows],
            unread_count=unread,
        ),
        message="Notifications retrieved successfully",
        pagination=pagination.info(total),
    )


@router.post("/notifications/{notification_id}/read", response_model=ApiResponse[None])
def mark_notification_read(
    notification_id: str,
    profile: UserProfile = Depends(get_current_profile),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[None]:
    service.mark_as_read(profile.id, notification_id)
    return ApiResponse(message="Notification marked as read")
