"""Classification orchestrator for upload and folder-pick sessions."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Protocol, Sequence

from sortwise.categories import Category
from sortwise.host.base import FileHandle, FolderPicker
from sortwise.host.errors import CapabilityUnsupportedError, PickerCancelledError
from sortwise.intake.discovery import read_directory
from sortwise.intake.models import IntakeFile
from sortwise.organization.errors import PermissionDeniedError
from sortwise.organization.executor import DiskOrganizer
from sortwise.organization.models import OrganizedFile, OrganizeResult

from .concurrency import join_all, settle_all
from .state import SessionState

LOGGER = logging.getLogger(__name__)

CAPABILITY_UNSUPPORTED_MESSAGE = (
    "Folder selection is not available in this environment. "
    "Pass a folder path or run from an interactive terminal."
)
FOLDER_READ_MESSAGE = "Could not read the selected directory."
PERMISSION_DENIED_MESSAGE = "Permission to write to the directory was denied."
ORGANIZE_FAILED_MESSAGE = "An error occurred while organizing files on disk."


class Classifier(Protocol):
    async def aclassify(self, file_name: str) -> Category: ...


class ClassificationOrchestrator:
    """Own the session state and run the intake and organize flows.

    Every intake action replaces the held files wholesale. Uploads tolerate
    individual classification failures; folder reads fail as a unit.

    Args:
        classifier: Object providing ``aclassify(file_name)``.
        organizer: Disk organizer used for organize passes.
        include_hidden: Whether dot-prefixed files in picked folders are read.
    """

    def __init__(
        self,
        classifier: Classifier,
        organizer: Optional[DiskOrganizer] = None,
        *,
        include_hidden: bool = True,
    ) -> None:
        self._classifier = classifier
        self._organizer = organizer or DiskOrganizer()
        self._include_hidden = include_hidden
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    async def upload(self, files: Sequence[IntakeFile]) -> SessionState:
        """Classify uploaded files, keeping whichever classifications succeed.

        Args:
            files: In-memory files selected by the user.

        Returns:
            SessionState: New state; ``error`` counts failed classifications.
        """
        files = list(files)
        if not files:
            return self._state

        self._state = SessionState(loading=True)
        outcomes = await settle_all(self._classify(file) for file in files)

        organized = tuple(outcome.value for outcome in outcomes if outcome.ok)
        failures = [
            (file, outcome.error)
            for file, outcome in zip(files, outcomes, strict=True)
            if not outcome.ok
        ]
        for file, error in failures:
            LOGGER.error("Classification failed for %s: %s", file.name, error)

        if failures:
            self._state = SessionState(
                files=organized,
                error=f"{len(failures)} files could not be classified. Please try again.",
                error_code="classification_warning",
            )
        else:
            self._state = SessionState(files=organized)
        return self._state

    async def pick_folder(self, picker: Optional[FolderPicker]) -> SessionState:
        """Read and classify every file directly inside a user-picked folder.

        Args:
            picker: Host folder picker, or ``None`` when the host has none.

        Returns:
            SessionState: New state. Cancelling the picker leaves the previous
                state in place.
        """
        if picker is None:
            return self._unsupported()

        previous = self._state
        try:
            directory = await picker.pick()
            self._state = SessionState(directory=directory, loading=True)
            entries = await read_directory(directory, include_hidden=self._include_hidden)
            organized = await join_all(
                self._classify(entry.file, entry.handle) for entry in entries
            )
        except PickerCancelledError:
            LOGGER.debug("Folder selection cancelled")
            self._state = previous
            return self._state
        except CapabilityUnsupportedError:
            self._state = previous
            return self._unsupported()
        except Exception as exc:
            LOGGER.error("Could not read the selected directory: %s", exc)
            self._state = SessionState(error=FOLDER_READ_MESSAGE, error_code="folder_read_error")
            return self._state

        self._state = SessionState(files=tuple(organized), directory=directory)
        return self._state

    async def organize(self, *, dry_run: bool = False) -> Optional[OrganizeResult]:
        """Move the held folder files into category subfolders.

        Args:
            dry_run: When true, report the planned moves and keep the session.

        Returns:
            Optional[OrganizeResult]: Result of the pass, or ``None`` when there
                was nothing to organize or the pass failed.
        """
        state = self._state
        directory = state.directory
        if directory is None or not state.files:
            return None

        if dry_run:
            return await self._organizer.organize(directory, state.files, dry_run=True)

        self._state = replace(state, organizing=True, error=None, error_code=None, notice=None)
        try:
            result = await self._organizer.organize(directory, state.files)
        except PermissionDeniedError as exc:
            LOGGER.warning("%s", exc)
            self._state = replace(
                state, error=PERMISSION_DENIED_MESSAGE, error_code="permission_denied"
            )
            return None
        except Exception as exc:
            LOGGER.error("Organize pass failed: %s", exc)
            self._state = replace(state, error=ORGANIZE_FAILED_MESSAGE, error_code="organize_error")
            return None

        self._state = SessionState(notice=f"Successfully organized {result.moved_count} files!")
        return result

    async def _classify(
        self, file: IntakeFile, handle: Optional[FileHandle] = None
    ) -> OrganizedFile:
        category = await self._classifier.aclassify(file.name)
        return OrganizedFile.from_intake(file, category, handle)

    def _unsupported(self) -> SessionState:
        self._state = replace(
            self._state,
            error=CAPABILITY_UNSUPPORTED_MESSAGE,
            error_code="capability_unsupported",
        )
        return self._state


__all__ = [
    "CAPABILITY_UNSUPPORTED_MESSAGE",
    "Classifier",
    "ClassificationOrchestrator",
    "FOLDER_READ_MESSAGE",
    "ORGANIZE_FAILED_MESSAGE",
    "PERMISSION_DENIED_MESSAGE",
]
