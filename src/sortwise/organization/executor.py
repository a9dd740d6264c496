"""Move classified files into per-category folders."""

from __future__ import annotations

import logging
from typing import Iterable

from sortwise.host.base import AccessMode, DirectoryHandle, PermissionState

from .errors import OrganizeError, PermissionDeniedError
from .models import MoveOperation, OrganizedFile, OrganizeResult

LOGGER = logging.getLogger(__name__)


class DiskOrganizer:
    """Relocate classified files inside their source folder.

    Moves run one at a time. Each move copies the file into a subfolder named
    after its category and then removes the original. A failed move only skips
    that file; a file copied but not yet removed stays in both places.
    """

    def plan(self, files: Iterable[OrganizedFile]) -> list[MoveOperation]:
        """Return the moves an organize pass would perform.

        Args:
            files: Classified files held by the session.

        Returns:
            list[MoveOperation]: One move per file with a handle and a
                category other than ``Other``.
        """
        return [
            MoveOperation(name=file.name, category=file.category)
            for file in files
            if file.eligible
        ]

    async def organize(
        self,
        directory: DirectoryHandle,
        files: Iterable[OrganizedFile],
        *,
        dry_run: bool = False,
    ) -> OrganizeResult:
        """Move every eligible file into its category folder.

        Args:
            directory: Folder the files were read from.
            files: Classified files held by the session.
            dry_run: When true, only plan the moves.

        Returns:
            OrganizeResult: Moved, skipped, and failed files.

        Raises:
            PermissionDeniedError: If read-write access is not granted.
        """
        files = list(files)
        result = OrganizeResult(planned=self.plan(files), dry_run=dry_run)
        if dry_run:
            result.skipped = [file.name for file in files if not file.eligible]
            return result

        await self._ensure_writable(directory)

        for file in files:
            if not file.eligible:
                result.skipped.append(file.name)
                continue
            try:
                await self._move(directory, file)
            except Exception as exc:
                LOGGER.error("Could not move file: %s: %s", file.name, exc)
                result.failed[file.name] = str(exc)
                continue
            result.moved.append(file.name)

        LOGGER.info(
            "Organized %d of %d file(s) in %s",
            result.moved_count,
            len(result.planned),
            directory.name,
        )
        return result

    async def _ensure_writable(self, directory: DirectoryHandle) -> None:
        state = await directory.query_permission(AccessMode.READWRITE)
        if state is not PermissionState.GRANTED:
            state = await directory.request_permission(AccessMode.READWRITE)
        if state is not PermissionState.GRANTED:
            raise PermissionDeniedError("Permission to write to the directory was denied.")

    async def _move(self, directory: DirectoryHandle, file: OrganizedFile) -> None:
        if file.handle is None:
            raise OrganizeError(f"{file.name} has no file handle to move")
        destination_dir = await directory.get_directory_handle(file.category, create=True)
        destination = await destination_dir.get_file_handle(file.name, create=True)
        writable = await destination.create_writable()
        try:
            original = await file.handle.get_file()
            await writable.write(original.data)
        except BaseException:
            await writable.abort()
            raise
        await writable.close()
        await directory.remove_entry(file.name)
        LOGGER.debug("Moved %s -> %s/%s", file.name, file.category, file.name)


__all__ = ["DiskOrganizer"]
