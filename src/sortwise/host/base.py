"""Abstract host file-system capability.

Directory and file handles are opaque capability tokens. A directory handle
grants access to the direct entries of one folder and carries a permission
state per access mode; a file handle can be read into memory or overwritten
through a writable stream. Every operation is a coroutine so callers suspend
at each host call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, AsyncIterator, Protocol, Union

if TYPE_CHECKING:
    from sortwise.intake.models import IntakeFile


class AccessMode(str, Enum):
    """Access modes a directory handle can be granted."""

    READ = "read"
    READWRITE = "readwrite"


class PermissionState(str, Enum):
    """Permission states for a given access mode."""

    NOT_REQUESTED = "not_requested"
    GRANTED = "granted"
    DENIED = "denied"


class WritableStream(ABC):
    """Stream that replaces a file's content once closed."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Append ``data`` to the pending content."""

    @abstractmethod
    async def close(self) -> None:
        """Commit the pending content to the destination file."""

    @abstractmethod
    async def abort(self) -> None:
        """Discard the pending content without touching the destination."""


class FileHandle(ABC):
    """Capability referencing one file inside a directory."""

    kind = "file"

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the base name of the file."""

    @abstractmethod
    async def get_file(self) -> "IntakeFile":
        """Read the file into memory."""

    @abstractmethod
    async def create_writable(self) -> WritableStream:
        """Open a writable stream on the file."""


class DirectoryHandle(ABC):
    """Capability referencing a folder and its direct entries."""

    kind = "directory"

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the base name of the folder."""

    @abstractmethod
    def entries(self) -> AsyncIterator["Entry"]:
        """Yield the direct children of the folder without descending."""

    @abstractmethod
    async def get_directory_handle(self, name: str, *, create: bool = False) -> "DirectoryHandle":
        """Return a child folder, creating it when ``create`` is set."""

    @abstractmethod
    async def get_file_handle(self, name: str, *, create: bool = False) -> FileHandle:
        """Return a child file, creating an empty one when ``create`` is set."""

    @abstractmethod
    async def remove_entry(self, name: str) -> None:
        """Delete the named child entry."""

    @abstractmethod
    async def query_permission(self, mode: AccessMode = AccessMode.READ) -> PermissionState:
        """Return the current permission state for ``mode``."""

    @abstractmethod
    async def request_permission(self, mode: AccessMode = AccessMode.READ) -> PermissionState:
        """Ask for ``mode`` access and return the resulting state."""


Entry = Union[FileHandle, DirectoryHandle]


class FolderPicker(Protocol):
    """Host dialog that lets the user choose a folder.

    Implementations raise ``PickerCancelledError`` when the user dismisses the
    dialog.
    """

    async def pick(self) -> DirectoryHandle: ...


__all__ = [
    "AccessMode",
    "PermissionState",
    "WritableStream",
    "FileHandle",
    "DirectoryHandle",
    "Entry",
    "FolderPicker",
]
