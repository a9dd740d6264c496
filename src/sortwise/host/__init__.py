"""Host file-system capability package."""

from .base import (
    AccessMode,
    DirectoryHandle,
    Entry,
    FileHandle,
    FolderPicker,
    PermissionState,
    WritableStream,
)
from .errors import CapabilityUnsupportedError, HostError, PickerCancelledError

__all__ = [
    "AccessMode",
    "CapabilityUnsupportedError",
    "DirectoryHandle",
    "Entry",
    "FileHandle",
    "FolderPicker",
    "HostError",
    "PermissionState",
    "PickerCancelledError",
    "WritableStream",
]
