# backend/farewelly/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

``get_current_profile`` turns the bearer token into the caller's
UserProfile; ``require_user_type`` narrows a route to given roles.
"""

import logging
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user_email
from ...core.enums import UserType
from ...core.exceptions import ForbiddenException, NotFoundException
from ...models.user import UserProfile
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def get_current_profile(
    request: Request,
    email: str = Depends(get_current_user_email),
    db: Session = Depends(get_db),
) -> UserProfile:
    profile = RepositoryFactory.create_user_profile_repository(db).get_by_email(email)
    if profile is None:
        raise NotFoundException("Profile not found")
    request.state.user_id = profile.id
    return profile


def require_user_type(*user_types: UserType) -> Callable[..., UserProfile]:
    allowed = {t.value for t in user_types}

    def dependency(profile: UserProfile = Depends(get_current_profile)) -> UserProfile:
        if profile.user_type not in allowed:
            logger.info(
                "Rejected %s profile %s for route limited to %s",
                profile.user_type,
                profile.id,
                sorted(allowed),
            )
            raise ForbiddenException("Forbidden - Invalid user type")
        return profile

    return dependency


require_venue = require_user_type(UserType.VENUE)
require_service_provider = require_user_type(UserType.DIRECTOR, UserType.VENUE)
require_family = require_user_type(UserType.FAMILY)
require_admin = require_user_type(UserType.ADMIN)
