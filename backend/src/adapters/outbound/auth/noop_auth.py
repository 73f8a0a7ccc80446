"""No-op authentication adapter for development mode.

Treats a non-empty bearer token as the user id so records stay scoped per
caller without an identity provider; an empty token maps to a fixed user.
"""
from __future__ import annotations

import logging
from typing import Optional

from backend.src.core.entities.user import User

logger = logging.getLogger(__name__)

DEV_USER_ID = "dev-user-000"


class NoopAuthAdapter:
    """Development stub implementing :class:`UserAuthPort`."""

    async def verify_token(self, token: str) -> Optional[User]:
        token = token.strip()
        if not token:
            logger.debug("NoopAuth: no token, using dev user")
            return User(id=DEV_USER_ID, email="dev@localhost", display_name="Developer", is_anonymous=True)
        logger.debug("NoopAuth: accepting token as user id (dev mode)")
        return User(id=token, display_name=token, is_anonymous=True)
