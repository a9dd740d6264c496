"""Intake data models."""

from __future__ import annotations

import mimetypes
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from sortwise.host.base import FileHandle


def guess_type(name: str) -> str:
    """Return the MIME type implied by a file name, or an empty string."""
    mime, _ = mimetypes.guess_type(name, strict=False)
    return mime or ""


class IntakeFile(BaseModel):
    """In-memory file as reported by the host.

    Attributes:
        name: Base name of the file.
        size: Length of the content in bytes.
        type: MIME type derived from the name; empty when unknown.
        data: Full file content.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(ge=0)
    type: str = ""
    data: bytes = Field(default=b"", repr=False)

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "IntakeFile":
        """Build an intake file from a name and its content."""
        return cls(name=name, size=len(data), type=guess_type(name), data=data)


class FolderEntry:
    """An intake file paired with the handle it was read from."""

    __slots__ = ("file", "handle")

    def __init__(self, file: IntakeFile, handle: "FileHandle") -> None:
        self.file = file
        self.handle = handle

    def __repr__(self) -> str:
        return f"FolderEntry(name={self.file.name!r})"


__all__ = ["IntakeFile", "FolderEntry", "guess_type"]
