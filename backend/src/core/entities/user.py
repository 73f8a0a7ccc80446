"""User entity resolved by the authentication adapter."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass
class User:
    """Authenticated caller. ``id`` scopes every persisted record."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    email: str = ""
    display_name: str = ""
    is_anonymous: bool = False
