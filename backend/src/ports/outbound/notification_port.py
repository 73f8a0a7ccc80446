"""Port for real-time notification delivery."""
from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationPort(Protocol):
    async def send_progress(self, channel: str, job_id: str, progress: int, message: str) -> None: ...
    async def send_completion(self, channel: str, job_id: str, result: dict) -> None: ...
    async def send_error(self, channel: str, job_id: str, error: str) -> None: ...
