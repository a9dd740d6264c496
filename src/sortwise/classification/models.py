"""Classification data models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from sortwise.categories import Category

FallbackReason = Literal["unexpected_answer", "oracle_error"]


class ClassificationDecision(BaseModel):
    """Outcome of classifying one file name.

    Every failure collapses into the ``Other`` category; ``fallback_reason``
    records why when that happened.

    Attributes:
        file_name: Name that was classified.
        category: Category assigned to the file.
        raw_answer: Trimmed text returned by the oracle, if any.
        fallback_reason: Why the classifier fell back to ``Other``.
    """

    file_name: str
    category: Category
    raw_answer: Optional[str] = None
    fallback_reason: Optional[FallbackReason] = None

    @property
    def fell_back(self) -> bool:
        return self.fallback_reason is not None


__all__ = ["ClassificationDecision", "FallbackReason"]
