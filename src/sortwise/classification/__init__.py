"""Classification package."""

from .engine import FileClassifier, build_prompt
from .models import ClassificationDecision
from .oracle import DSPyOracle, Oracle

__all__ = [
    "ClassificationDecision",
    "DSPyOracle",
    "FileClassifier",
    "Oracle",
    "build_prompt",
]
