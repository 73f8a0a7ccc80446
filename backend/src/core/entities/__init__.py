from backend.src.core.entities.ad_package import AdBrief, AdPackage, AdScript, AdVariant
from backend.src.core.entities.batch_run import BatchItemError, BatchRun
from backend.src.core.entities.frame import EditedFrameOverlay, Frame, FrameSession
from backend.src.core.entities.generation_job import GenerationJob, JobKind, JobStatus
from backend.src.core.entities.project import Character, Project, Scene, VideoAsset
from backend.src.core.entities.user import User

__all__ = [
    "AdBrief", "AdPackage", "AdScript", "AdVariant",
    "BatchItemError", "BatchRun",
    "EditedFrameOverlay", "Frame", "FrameSession",
    "GenerationJob", "JobKind", "JobStatus",
    "Character", "Project", "Scene", "VideoAsset", "User",
]
