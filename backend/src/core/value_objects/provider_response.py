"""Decoded provider responses.

A remote generation endpoint answers a submit either with the finished
result or with a queue handle to poll. Adapters decode that once into
:class:`Immediate` or :class:`Queued`; nothing downstream inspects raw
response fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class QueueHandle:
    request_id: str
    status_url: str
    response_url: str


@dataclass(frozen=True)
class Immediate:
    result: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Queued:
    handle: QueueHandle


ProviderResponse = Union[Immediate, Queued]


class PollState(str, Enum):
    IN_QUEUE = "IN_QUEUE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PollStatus:
    state: PollState
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (PollState.COMPLETED, PollState.FAILED)
