"""In-memory host capability.

A small virtual filesystem implementing the handle interface. Tests use it to
drive intake and organize flows deterministically, including permission
prompts and injected failures.
"""

from __future__ import annotations

from typing import AsyncIterator, Mapping, Optional, Union

from sortwise.intake.models import IntakeFile

from .base import AccessMode, DirectoryHandle, Entry, FileHandle, PermissionState, WritableStream
from .errors import PickerCancelledError


class MemoryWritableStream(WritableStream):
    """Buffer writes and commit them to a memory file on close."""

    def __init__(self, target: "MemoryFileHandle") -> None:
        self._target = target
        self._buffer = bytearray()
        self.closed = False

    async def write(self, data: bytes) -> None:
        if self._target.name in self._target.filesystem.fail_writes:
            raise OSError(f"Simulated write failure for {self._target.name}")
        self._buffer.extend(data)

    async def close(self) -> None:
        self._target.data = bytes(self._buffer)
        self.closed = True

    async def abort(self) -> None:
        self._buffer.clear()
        self.closed = True


class MemoryFileHandle(FileHandle):
    """File living in a :class:`MemoryDirectoryHandle`."""

    def __init__(self, name: str, data: bytes, filesystem: "MemoryFilesystem") -> None:
        self._name = name
        self.data = data
        self.filesystem = filesystem

    @property
    def name(self) -> str:
        return self._name

    async def get_file(self) -> IntakeFile:
        if self._name in self.filesystem.fail_reads:
            raise OSError(f"Simulated read failure for {self._name}")
        return IntakeFile.from_bytes(self._name, self.data)

    async def create_writable(self) -> WritableStream:
        return MemoryWritableStream(self)

    def __repr__(self) -> str:
        return f"MemoryFileHandle({self._name!r})"


class MemoryDirectoryHandle(DirectoryHandle):
    """Folder living in a :class:`MemoryFilesystem`."""

    def __init__(self, name: str, filesystem: "MemoryFilesystem") -> None:
        self._name = name
        self.filesystem = filesystem
        self.children: dict[str, Union[MemoryFileHandle, "MemoryDirectoryHandle"]] = {}

    @property
    def name(self) -> str:
        return self._name

    async def entries(self) -> AsyncIterator[Entry]:
        if self.filesystem.enumeration_error is not None:
            raise self.filesystem.enumeration_error
        for child in list(self.children.values()):
            yield child

    async def get_directory_handle(self, name: str, *, create: bool = False) -> DirectoryHandle:
        existing = self.children.get(name)
        if isinstance(existing, MemoryDirectoryHandle):
            return existing
        if existing is not None:
            raise NotADirectoryError(name)
        if not create:
            raise FileNotFoundError(name)
        directory = MemoryDirectoryHandle(name, self.filesystem)
        self.children[name] = directory
        return directory

    async def get_file_handle(self, name: str, *, create: bool = False) -> FileHandle:
        existing = self.children.get(name)
        if isinstance(existing, MemoryFileHandle):
            return existing
        if existing is not None:
            raise IsADirectoryError(name)
        if not create:
            raise FileNotFoundError(name)
        handle = MemoryFileHandle(name, b"", self.filesystem)
        self.children[name] = handle
        return handle

    async def remove_entry(self, name: str) -> None:
        if name in self.filesystem.fail_removals:
            raise OSError(f"Simulated removal failure for {name}")
        if name not in self.children:
            raise FileNotFoundError(name)
        del self.children[name]

    async def query_permission(self, mode: AccessMode = AccessMode.READ) -> PermissionState:
        self.filesystem.permission_queries.append(mode)
        return self.filesystem.permissions.get(mode, PermissionState.NOT_REQUESTED)

    async def request_permission(self, mode: AccessMode = AccessMode.READ) -> PermissionState:
        self.filesystem.permission_requests.append(mode)
        if self.filesystem.permission_error is not None:
            raise self.filesystem.permission_error
        state = self.filesystem.permissions.get(mode, PermissionState.NOT_REQUESTED)
        if state is PermissionState.NOT_REQUESTED:
            answer = self.filesystem.request_answers.get(mode, PermissionState.DENIED)
            self.filesystem.permissions[mode] = answer
            state = answer
        return state

    def add_file(self, name: str, data: bytes = b"") -> MemoryFileHandle:
        handle = MemoryFileHandle(name, data, self.filesystem)
        self.children[name] = handle
        return handle

    def add_directory(self, name: str) -> "MemoryDirectoryHandle":
        directory = MemoryDirectoryHandle(name, self.filesystem)
        self.children[name] = directory
        return directory

    def listing(self) -> dict[str, object]:
        """Return a nested ``name -> bytes | dict`` snapshot of the folder."""
        snapshot: dict[str, object] = {}
        for name, child in self.children.items():
            if isinstance(child, MemoryDirectoryHandle):
                snapshot[name] = child.listing()
            else:
                snapshot[name] = child.data
        return snapshot

    def __repr__(self) -> str:
        return f"MemoryDirectoryHandle({self._name!r})"


class MemoryFilesystem:
    """Shared state and fault injection for a tree of memory handles.

    Attributes:
        root: Top-level folder.
        permissions: Current permission state per access mode.
        request_answers: State a pending permission request resolves to.
        permission_error: Exception raised by permission requests, if any.
        enumeration_error: Exception raised when listing any folder, if any.
        fail_reads: File names whose reads fail.
        fail_writes: File names whose writable streams fail on write.
        fail_removals: Entry names whose removal fails.
        permission_queries: Modes queried, in order.
        permission_requests: Modes requested, in order.
    """

    def __init__(
        self,
        name: str = "root",
        *,
        files: Optional[Mapping[str, bytes]] = None,
        permissions: Optional[Mapping[AccessMode, PermissionState]] = None,
        request_answers: Optional[Mapping[AccessMode, PermissionState]] = None,
    ) -> None:
        self.permissions: dict[AccessMode, PermissionState] = {
            AccessMode.READ: PermissionState.GRANTED,
            **dict(permissions or {}),
        }
        self.request_answers: dict[AccessMode, PermissionState] = dict(request_answers or {})
        self.permission_error: Optional[BaseException] = None
        self.enumeration_error: Optional[BaseException] = None
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.fail_removals: set[str] = set()
        self.permission_queries: list[AccessMode] = []
        self.permission_requests: list[AccessMode] = []
        self.root = MemoryDirectoryHandle(name, self)
        for file_name, data in (files or {}).items():
            self.root.add_file(file_name, data)

    def picker(self) -> "MemoryFolderPicker":
        """Return a picker that yields this filesystem's root."""
        return MemoryFolderPicker(self.root)


class MemoryFolderPicker:
    """Picker returning a fixed folder, or cancelling when told to."""

    def __init__(
        self,
        directory: Optional[MemoryDirectoryHandle],
        *,
        error: Optional[BaseException] = None,
    ) -> None:
        self._directory = directory
        self._error = error
        self.calls = 0

    @classmethod
    def cancelled(cls) -> "MemoryFolderPicker":
        return cls(None, error=PickerCancelledError("Folder selection cancelled."))

    async def pick(self) -> DirectoryHandle:
        self.calls += 1
        if self._error is not None:
            raise self._error
        if self._directory is None:
            raise PickerCancelledError("Folder selection cancelled.")
        return self._directory


__all__ = [
    "MemoryDirectoryHandle",
    "MemoryFileHandle",
    "MemoryFilesystem",
    "MemoryFolderPicker",
    "MemoryWritableStream",
]
