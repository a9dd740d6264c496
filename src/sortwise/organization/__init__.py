"""Organization package."""

from .errors import OrganizeError, PermissionDeniedError
from .executor import DiskOrganizer
from .models import MoveOperation, OrganizedFile, OrganizeResult

__all__ = [
    "DiskOrganizer",
    "MoveOperation",
    "OrganizeError",
    "OrganizeResult",
    "OrganizedFile",
    "PermissionDeniedError",
]
