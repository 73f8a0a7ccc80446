from backend.src.application.ad_package_service import AdPackageService
from backend.src.application.batch_orchestrator import BatchOrchestrator
from backend.src.application.frame_session_service import FrameSessionService
from backend.src.application.generation_service import GenerationService
from backend.src.application.job_orchestrator import JobOrchestrator
from backend.src.application.project_service import ProjectService
from backend.src.application.scene_service import SceneService

__all__ = [
    "GenerationService",
    "JobOrchestrator",
    "BatchOrchestrator",
    "ProjectService",
    "SceneService",
    "FrameSessionService",
    "AdPackageService",
]
