"""Port for resolving the calling user from a bearer token."""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.entities.user import User


@runtime_checkable
class UserAuthPort(Protocol):
    async def verify_token(self, token: str) -> Optional[User]: ...
