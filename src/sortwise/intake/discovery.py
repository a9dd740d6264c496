"""Intake helpers for uploaded files and picked folders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .errors import FolderReadError
from .models import FolderEntry, IntakeFile

if TYPE_CHECKING:
    from sortwise.host.base import DirectoryHandle

LOGGER = logging.getLogger(__name__)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def load_uploads(paths: Iterable[Path]) -> list[IntakeFile]:
    """Read user-selected files into memory.

    Args:
        paths: Files chosen by the user, in selection order.

    Returns:
        list[IntakeFile]: One in-memory file per path.
    """
    uploads: list[IntakeFile] = []
    for path in paths:
        resolved = path.expanduser()
        uploads.append(IntakeFile.from_bytes(resolved.name, resolved.read_bytes()))
    return uploads


async def read_directory(
    directory: "DirectoryHandle",
    *,
    include_hidden: bool = True,
) -> list[FolderEntry]:
    """Read every direct file entry of ``directory`` into memory.

    Subdirectories are skipped, not descended into. A failure on any entry
    aborts the whole read.

    Args:
        directory: Folder handle obtained from the picker.
        include_hidden: Whether dot-prefixed entries are included.

    Returns:
        list[FolderEntry]: Files paired with their movable handles.

    Raises:
        FolderReadError: If the host reports an I/O failure.
    """
    entries: list[FolderEntry] = []
    try:
        async for entry in directory.entries():
            if entry.kind != "file":
                continue
            if not include_hidden and _is_hidden(entry.name):
                continue
            file = await entry.get_file()
            entries.append(FolderEntry(file=file, handle=entry))
    except OSError as exc:
        raise FolderReadError(f"Unable to read {directory.name}: {exc}") from exc

    LOGGER.debug("Read %d file(s) from %s", len(entries), directory.name)
    return entries
