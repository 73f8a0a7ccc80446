from backend.src.core.value_objects.poll_policy import PollPolicy
from backend.src.core.value_objects.provider_response import Immediate, Queued, QueueHandle
from backend.src.core.value_objects.trim_window import TrimWindow

__all__ = ["PollPolicy", "Immediate", "Queued", "QueueHandle", "TrimWindow"]
