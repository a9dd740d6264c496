"""File-name classifier built on a text-generation oracle.

The classifier is total: whatever the oracle does (answers with a valid
category, answers with something else, or raises), callers always receive a
registered category. Anything other than a clean match becomes ``Other``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from sortwise.categories import CATEGORIES, OTHER, Category, is_category
from sortwise.config.models import LLMSettings

from .models import ClassificationDecision
from .oracle import DSPyOracle, Oracle

LOGGER = logging.getLogger(__name__)


def build_prompt(file_name: str) -> str:
    """Return the classification instruction for ``file_name``."""
    return (
        "You are an expert file organizer. Classify the following file name into one of "
        f"these categories: {', '.join(CATEGORIES)}.\n"
        f'File name: "{file_name}"\n\n'
        "Respond with ONLY the category name and nothing else. "
        f'If you are unsure, classify it as "{OTHER}".'
    )


class FileClassifier:
    """Classify file names into registry categories.

    Args:
        settings: LLM settings used to build the default oracle.
        oracle: Callable mapping a prompt to answer text; overrides ``settings``.
    """

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        *,
        oracle: Optional[Oracle] = None,
    ) -> None:
        self._oracle: Oracle = oracle if oracle is not None else DSPyOracle(settings)

    def decide(self, file_name: str) -> ClassificationDecision:
        """Classify ``file_name`` and report whether a fallback was used.

        Args:
            file_name: Base name of the file to classify.

        Returns:
            ClassificationDecision: The category plus fallback diagnostics.
        """
        prompt = build_prompt(file_name)
        try:
            answer = self._oracle(prompt)
        except Exception as exc:
            LOGGER.error("Error classifying %r; defaulting to %s: %s", file_name, OTHER, exc)
            return ClassificationDecision(
                file_name=file_name, category=OTHER, fallback_reason="oracle_error"
            )

        category = (answer if isinstance(answer, str) else "").strip()
        if is_category(category):
            return ClassificationDecision(
                file_name=file_name, category=category, raw_answer=category
            )

        LOGGER.warning(
            'Classifier returned an unexpected category for %r: "%s". Defaulting to "%s".',
            file_name,
            category,
            OTHER,
        )
        return ClassificationDecision(
            file_name=file_name,
            category=OTHER,
            raw_answer=category,
            fallback_reason="unexpected_answer",
        )

    def classify(self, file_name: str) -> Category:
        """Return the category for ``file_name``; never raises."""
        return self.decide(file_name).category

    async def adecide(self, file_name: str) -> ClassificationDecision:
        """Run :meth:`decide` on a dedicated thread and await the decision.

        Every call gets its own thread instead of a slot in the event loop's
        default executor, so the number of in-flight oracle calls is bounded
        only by how many calls the caller starts.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[ClassificationDecision] = loop.create_future()

        def _settle(
            decision: Optional[ClassificationDecision], error: Optional[BaseException]
        ) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(decision)

        def _run() -> None:
            try:
                decision = self.decide(file_name)
            except BaseException as exc:
                loop.call_soon_threadsafe(_settle, None, exc)
                raise
            loop.call_soon_threadsafe(_settle, decision, None)

        threading.Thread(target=_run, name="sortwise-classify", daemon=True).start()
        return await future

    async def aclassify(self, file_name: str) -> Category:
        """Classify ``file_name`` without blocking the event loop."""
        return (await self.adecide(file_name)).category
