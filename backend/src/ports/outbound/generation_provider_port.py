"""Port for remote generation providers (queue-based or synchronous)."""
from __future__ import annotations
from typing import TYPE_CHECKING, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.value_objects.generation_request import GenerationRequest
    from backend.src.core.value_objects.provider_response import PollStatus, ProviderResponse, QueueHandle


@runtime_checkable
class GenerationProviderPort(Protocol):
    async def submit(self, request: GenerationRequest) -> ProviderResponse: ...
    async def poll(self, handle: QueueHandle) -> PollStatus: ...
