"""Port for composing ad packages from a brief."""
from __future__ import annotations
from typing import TYPE_CHECKING, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.entities.ad_package import AdBrief, AdPackage


@runtime_checkable
class AdWriterPort(Protocol):
    async def write(self, brief: AdBrief, variant_count: int, context: str = "") -> AdPackage: ...
