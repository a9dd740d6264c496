"""File intake package."""

from .discovery import load_uploads, read_directory
from .errors import FolderReadError
from .models import FolderEntry, IntakeFile, guess_type

__all__ = [
    "FolderEntry",
    "FolderReadError",
    "IntakeFile",
    "guess_type",
    "load_uploads",
    "read_directory",
]
