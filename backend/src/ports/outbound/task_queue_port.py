"""Port for scheduling background work."""
from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class TaskQueuePort(Protocol):
    def enqueue(self, task_name: str, args: dict) -> str: ...
    async def drain(self) -> None: ...
    async def shutdown(self) -> None: ...
