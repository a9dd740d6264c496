"""Session state held by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sortwise.categories import CATEGORIES, Category
from sortwise.host.base import DirectoryHandle
from sortwise.organization.models import OrganizedFile


@dataclass(frozen=True, slots=True)
class SessionState:
    """Snapshot of one intake session.

    Attributes:
        files: Classified files from the latest intake action.
        directory: Folder the files were read from; absent for uploads.
        loading: Whether a classification pass is running.
        organizing: Whether an organize pass is running.
        error: User-facing error or warning message.
        error_code: Machine-readable identifier for ``error``.
        notice: User-facing success message.
    """

    files: tuple[OrganizedFile, ...] = ()
    directory: Optional[DirectoryHandle] = None
    loading: bool = False
    organizing: bool = False
    error: Optional[str] = None
    error_code: Optional[str] = None
    notice: Optional[str] = None

    @property
    def can_organize(self) -> bool:
        return self.directory is not None and bool(self.files)

    def by_category(self) -> dict[Category, list[OrganizedFile]]:
        """Group files by category in registry order, omitting empty categories."""
        grouped: dict[Category, list[OrganizedFile]] = {}
        for category in CATEGORIES:
            members = [file for file in self.files if file.category == category]
            if members:
                grouped[category] = members
        return grouped


__all__ = ["SessionState"]
