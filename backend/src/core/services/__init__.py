from backend.src.core.services.ad_script_writer import TemplateAdWriter
from backend.src.core.services.rate_limiter import MinIntervalGate
from backend.src.core.services.srt_exporter import script_to_srt

__all__ = ["MinIntervalGate", "TemplateAdWriter", "script_to_srt"]
