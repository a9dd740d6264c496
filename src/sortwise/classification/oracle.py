"""DSPy-backed text-generation oracle."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import dspy

from sortwise.config.models import LLMSettings

LOGGER = logging.getLogger(__name__)

Oracle = Callable[[str], str]


class DSPyOracle:
    """Send a prompt to the configured language model and return its answer.

    The language model is built on first use, so configuration problems such
    as a missing credential surface as call failures rather than at startup.
    """

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        self._settings = settings or LLMSettings()
        self._lock = threading.Lock()
        self._language_model = None
        self._program = None

    def __call__(self, prompt: str) -> str:
        language_model, program = self._ensure_program()
        with dspy.context(lm=language_model):
            response = program(prompt=prompt)
        answer = getattr(response, "category", "") if response else ""
        return answer if isinstance(answer, str) else str(answer)

    def _ensure_program(self):
        with self._lock:
            if self._program is None:
                self._language_model = self._build_language_model()
                self._program = self._build_program()
            return self._language_model, self._program

    def _build_language_model(self):
        """Construct the DSPy language model described by the LLM settings."""

        lm_kwargs: dict[str, object] = {
            "model": self._settings.qualified_model(),
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
            "num_retries": 0,
            "cache": False,
        }
        if self._settings.api_base_url:
            lm_kwargs["api_base"] = self._settings.api_base_url
        if self._settings.api_key is not None:
            lm_kwargs["api_key"] = self._settings.api_key

        try:
            language_model = dspy.LM(**lm_kwargs)
        except Exception as exc:
            raise RuntimeError(
                f"Unable to configure the language model {lm_kwargs['model']!r}. "
                "Verify the llm section of your configuration."
            ) from exc
        LOGGER.debug("Configured language model %s", lm_kwargs["model"])
        return language_model

    @staticmethod
    def _build_program():
        """Construct the DSPy program used for file-name classification."""

        class FileNameCategorySignature(dspy.Signature):  # type: ignore[misc]
            """Answer the file-organizing instruction with a single category name."""

            prompt: str = dspy.InputField()
            category: str = dspy.OutputField()

        return dspy.Predict(FileNameCategorySignature)


__all__ = ["DSPyOracle", "Oracle"]
