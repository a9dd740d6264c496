"""Host capability backed by the local filesystem."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Callable, Optional

from sortwise.intake.models import IntakeFile

from .base import AccessMode, DirectoryHandle, Entry, FileHandle, PermissionState, WritableStream
from .errors import PickerCancelledError

LOGGER = logging.getLogger(__name__)

ConfirmCallback = Callable[[AccessMode, Path], bool]
SWAP_SUFFIX = ".crswap"


def _validate_entry_name(name: str) -> None:
    if not name or name in {".", ".."} or "/" in name or os.sep in name:
        raise ValueError(f"Invalid entry name: {name!r}")


class _Grants:
    """Permission decisions shared by a folder and the handles derived from it."""

    def __init__(self, granted: set[AccessMode] | None = None) -> None:
        self.granted: set[AccessMode] = set(granted or ())
        self.denied: set[AccessMode] = set()


class LocalWritableStream(WritableStream):
    """Write to a swap file that replaces the destination on close."""

    def __init__(self, destination: Path, swap: Path, handle: BinaryIO) -> None:
        self._destination = destination
        self._swap = swap
        self._handle = handle

    @classmethod
    async def open(cls, destination: Path) -> "LocalWritableStream":
        swap = destination.with_name(destination.name + SWAP_SUFFIX)
        handle = await asyncio.to_thread(swap.open, "wb")
        return cls(destination, swap, handle)

    async def write(self, data: bytes) -> None:
        await asyncio.to_thread(self._handle.write, data)

    async def close(self) -> None:
        await asyncio.to_thread(self._handle.close)
        try:
            await asyncio.to_thread(os.replace, self._swap, self._destination)
        except OSError:
            await asyncio.to_thread(self._swap.unlink, missing_ok=True)
            raise

    async def abort(self) -> None:
        await asyncio.to_thread(self._handle.close)
        await asyncio.to_thread(self._swap.unlink, missing_ok=True)


class LocalFileHandle(FileHandle):
    """Handle for a regular file on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    async def get_file(self) -> IntakeFile:
        data = await asyncio.to_thread(self._path.read_bytes)
        return IntakeFile.from_bytes(self._path.name, data)

    async def create_writable(self) -> WritableStream:
        return await LocalWritableStream.open(self._path)

    def __repr__(self) -> str:
        return f"LocalFileHandle({str(self._path)!r})"


class LocalDirectoryHandle(DirectoryHandle):
    """Handle for a folder on disk.

    Read access is granted whenever the folder is readable. Read-write access
    starts unrequested and is settled by ``confirm`` the first time it is
    requested; handles derived from this one share the decision.
    """

    def __init__(
        self,
        path: Path,
        *,
        confirm: Optional[ConfirmCallback] = None,
        granted: set[AccessMode] | None = None,
        _grants: Optional[_Grants] = None,
    ) -> None:
        self._path = path
        self._confirm = confirm
        self._grants = _grants or _Grants(granted)

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    async def entries(self) -> AsyncIterator[Entry]:
        children = await asyncio.to_thread(lambda: sorted(self._path.iterdir()))
        for child in children:
            if child.is_dir():
                yield self._child(child)
            elif child.is_file():
                yield LocalFileHandle(child)

    async def get_directory_handle(self, name: str, *, create: bool = False) -> DirectoryHandle:
        _validate_entry_name(name)
        target = self._path / name
        if target.exists():
            if not target.is_dir():
                raise NotADirectoryError(f"{target} is not a directory")
        elif create:
            await asyncio.to_thread(target.mkdir)
        else:
            raise FileNotFoundError(f"No such directory: {target}")
        return self._child(target)

    async def get_file_handle(self, name: str, *, create: bool = False) -> FileHandle:
        _validate_entry_name(name)
        target = self._path / name
        if target.exists():
            if target.is_dir():
                raise IsADirectoryError(f"{target} is a directory")
        elif create:
            await asyncio.to_thread(target.touch)
        else:
            raise FileNotFoundError(f"No such file: {target}")
        return LocalFileHandle(target)

    async def remove_entry(self, name: str) -> None:
        _validate_entry_name(name)
        target = self._path / name
        if target.is_dir():
            await asyncio.to_thread(target.rmdir)
        else:
            await asyncio.to_thread(target.unlink)

    async def query_permission(self, mode: AccessMode = AccessMode.READ) -> PermissionState:
        if mode is AccessMode.READ:
            readable = os.access(self._path, os.R_OK | os.X_OK)
            return PermissionState.GRANTED if readable else PermissionState.DENIED
        if mode in self._grants.denied:
            return PermissionState.DENIED
        if mode in self._grants.granted:
            if os.access(self._path, os.W_OK):
                return PermissionState.GRANTED
            return PermissionState.DENIED
        return PermissionState.NOT_REQUESTED

    async def request_permission(self, mode: AccessMode = AccessMode.READ) -> PermissionState:
        current = await self.query_permission(mode)
        if current is not PermissionState.NOT_REQUESTED:
            return current

        approved = bool(self._confirm and self._confirm(mode, self._path))
        if approved and os.access(self._path, os.W_OK):
            self._grants.granted.add(mode)
            return PermissionState.GRANTED

        LOGGER.debug("Write access to %s refused", self._path)
        self._grants.denied.add(mode)
        return PermissionState.DENIED

    def _child(self, path: Path) -> "LocalDirectoryHandle":
        return LocalDirectoryHandle(path, confirm=self._confirm, _grants=self._grants)

    def __repr__(self) -> str:
        return f"LocalDirectoryHandle({str(self._path)!r})"


class PathFolderPicker:
    """Picker that resolves a folder the user already named."""

    def __init__(
        self,
        path: Path,
        *,
        confirm: Optional[ConfirmCallback] = None,
        granted: set[AccessMode] | None = None,
    ) -> None:
        self._path = path
        self._confirm = confirm
        self._granted = granted

    async def pick(self) -> DirectoryHandle:
        resolved = self._path.expanduser().resolve()
        if not resolved.is_dir():
            raise NotADirectoryError(f"{resolved} is not a directory")
        return LocalDirectoryHandle(resolved, confirm=self._confirm, granted=self._granted)


class PromptFolderPicker:
    """Picker that asks for a folder interactively.

    ``ask`` returns the chosen path, or ``None`` when the user backs out.
    """

    def __init__(
        self,
        ask: Callable[[], Optional[str]],
        *,
        confirm: Optional[ConfirmCallback] = None,
        granted: set[AccessMode] | None = None,
    ) -> None:
        self._ask = ask
        self._confirm = confirm
        self._granted = granted

    async def pick(self) -> DirectoryHandle:
        answer = self._ask()
        if not answer or not answer.strip():
            raise PickerCancelledError("Folder selection cancelled.")
        picker = PathFolderPicker(
            Path(answer.strip()), confirm=self._confirm, granted=self._granted
        )
        return await picker.pick()


__all__ = [
    "ConfirmCallback",
    "LocalDirectoryHandle",
    "LocalFileHandle",
    "LocalWritableStream",
    "PathFolderPicker",
    "PromptFolderPicker",
]
