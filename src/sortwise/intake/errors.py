"""Intake errors."""


class FolderReadError(Exception):
    """Raised when a folder's entries cannot be enumerated or read."""
