"""Session orchestration package."""

from .concurrency import Settled, join_all, settle_all
from .orchestrator import (
    CAPABILITY_UNSUPPORTED_MESSAGE,
    FOLDER_READ_MESSAGE,
    ORGANIZE_FAILED_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
    ClassificationOrchestrator,
    Classifier,
)
from .state import SessionState

__all__ = [
    "CAPABILITY_UNSUPPORTED_MESSAGE",
    "ClassificationOrchestrator",
    "Classifier",
    "FOLDER_READ_MESSAGE",
    "ORGANIZE_FAILED_MESSAGE",
    "PERMISSION_DENIED_MESSAGE",
    "SessionState",
    "Settled",
    "join_all",
    "settle_all",
]
