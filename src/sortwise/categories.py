"""Fixed registry of file categories."""

from __future__ import annotations

from typing import Literal, get_args

Category = Literal[
    "Invoices",
    "Receipts",
    "Images",
    "Documents",
    "Code",
    "Spreadsheets",
    "Presentations",
    "Videos",
    "Audio",
    "Archives",
    "Other",
]

CATEGORIES: tuple[Category, ...] = get_args(Category)
OTHER: Category = "Other"


def is_category(value: object) -> bool:
    """Return True when ``value`` exactly matches a registered category."""
    return isinstance(value, str) and value in CATEGORIES


__all__ = ["Category", "CATEGORIES", "OTHER", "is_category"]
