from backend.src.ports.outbound.ad_writer_port import AdWriterPort
from backend.src.ports.outbound.file_storage_port import FileStoragePort
from backend.src.ports.outbound.frame_extraction_port import FrameExtractionPort
from backend.src.ports.outbound.frame_vision_port import FrameVisionPort
from backend.src.ports.outbound.generation_provider_port import GenerationProviderPort
from backend.src.ports.outbound.job_repository_port import JobRepositoryPort
from backend.src.ports.outbound.notification_port import NotificationPort
from backend.src.ports.outbound.project_repository_port import ProjectRepositoryPort
from backend.src.ports.outbound.task_queue_port import TaskQueuePort
from backend.src.ports.outbound.user_auth_port import UserAuthPort

__all__ = [
    "AdWriterPort",
    "FileStoragePort",
    "FrameExtractionPort",
    "FrameVisionPort",
    "GenerationProviderPort",
    "JobRepositoryPort",
    "NotificationPort",
    "ProjectRepositoryPort",
    "TaskQueuePort",
    "UserAuthPort",
]
