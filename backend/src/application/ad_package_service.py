"""
Ad package use cases: generate from a brief, export to JSON or SRT, import.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError

from backend.src.core.entities.ad_package import AdBrief, AdPackage, AdScript
from backend.src.core.exceptions import InputValidationError
from backend.src.core.services.rate_limiter import MinIntervalGate
from backend.src.core.services.srt_exporter import SRT_FILENAME, script_to_srt

logger = logging.getLogger(__name__)

MIN_VARIANTS = 1
MAX_VARIANTS = 5

DEFAULT_GLOBAL_CONTEXT = (
    "Write short-form vertical video ads. Keep claims truthful and verifiable, "
    "front-load the hook in the first two seconds and respect platform caption limits."
)


class AdPackageService:
    def __init__(
        self,
        ad_writer,   # AdWriterPort
        rate_gate: MinIntervalGate,
        global_context: str = "",
        max_variants: int = MAX_VARIANTS,
    ):
        self._writer = ad_writer
        self._rate_gate = rate_gate
        self._global_context = global_context or DEFAULT_GLOBAL_CONTEXT
        self._max_variants = max_variants

    def build_context(self, brief: AdBrief) -> str:
        """Global rule first, then the brief's own context."""
        parts = [self._global_context]
        if brief.brief_context and brief.brief_context.strip():
            parts.append(f"USER_BRIEF_CONTEXT: {brief.brief_context.strip()}")
        return "\n\n".join(parts)

    async def generate(self, user_id: str, brief: AdBrief, variant_count: int = 3) -> AdPackage:
        if not MIN_VARIANTS <= variant_count <= self._max_variants:
            raise InputValidationError(
                f"variant_count must be between {MIN_VARIANTS} and {self._max_variants}"
            )
        self._rate_gate.acquire(f"{user_id}:ads")
        package = await self._writer.write(brief, variant_count, self.build_context(brief))
        logger.info(
            "Generated ad package for %s on %s with %d variant(s)",
            brief.brand, brief.platform.value, len(package.variants),
        )
        return package

    @staticmethod
    def export_json(package: AdPackage) -> tuple[str, str]:
        filename = f"{package.brief.brand}_ad_package.json"
        return filename, package.model_dump_json(by_alias=True, indent=2)

    @staticmethod
    def parse_json(text: str) -> AdPackage:
        try:
            return AdPackage.model_validate_json(text)
        except ValidationError as exc:
            raise InputValidationError(f"Invalid ad package: {exc.error_count()} error(s)") from exc

    @staticmethod
    def export_srt(script: AdScript) -> tuple[str, str]:
        return SRT_FILENAME, script_to_srt(script)
