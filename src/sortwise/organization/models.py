"""Organization data models."""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sortwise.categories import OTHER, Category
from sortwise.host.base import FileHandle
from sortwise.intake.models import IntakeFile


class OrganizedFile(BaseModel):
    """A file after classification.

    Attributes:
        id: Opaque identifier used to key the file in listings.
        name: Base name of the file; also the name it is moved under.
        category: Category assigned at classification time.
        size: Size in bytes.
        type: MIME type reported at intake.
        handle: Movable handle, present only for files read from a picked folder.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    category: Category
    size: int = 0
    type: str = ""
    handle: Optional[FileHandle] = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_intake(
        cls,
        file: IntakeFile,
        category: Category,
        handle: Optional[FileHandle] = None,
    ) -> "OrganizedFile":
        return cls(name=file.name, category=category, size=file.size, type=file.type, handle=handle)

    @property
    def movable(self) -> bool:
        return self.handle is not None

    @property
    def eligible(self) -> bool:
        """Whether the organizer would relocate this file."""
        return self.movable and self.category != OTHER


class MoveOperation(BaseModel):
    """Represents moving a file into its category folder.

    Attributes:
        name: File name inside the source folder.
        category: Category folder the file moves into.
    """

    name: str
    category: Category

    @property
    def destination(self) -> str:
        return f"{self.category}/{self.name}"


class OrganizeResult(BaseModel):
    """Outcome of an organize pass.

    Attributes:
        planned: Moves the pass set out to perform.
        moved: Names of files that were moved.
        skipped: Names of files left alone (``Other`` or not movable).
        failed: Names of files whose move failed, mapped to the error text.
        dry_run: Whether the pass only planned moves.
    """

    planned: List[MoveOperation] = Field(default_factory=list)
    moved: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False

    @property
    def moved_count(self) -> int:
        return len(self.moved)


__all__ = ["OrganizedFile", "MoveOperation", "OrganizeResult"]
