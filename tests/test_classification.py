"""Tests for the category registry and the file-name classifier."""

from __future__ import annotations

import asyncio
import logging

import pytest

from sortwise.categories import CATEGORIES, OTHER, is_category
from sortwise.classification import FileClassifier, build_prompt
from sortwise.config.models import LLMSettings


class _ScriptedOracle:
    """Oracle returning canned answers keyed by a substring of the prompt."""

    def __init__(self, answers: dict[str, object], default: object = "Other") -> None:
        self.answers = answers
        self.default = default
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> object:
        self.prompts.append(prompt)
        for needle, answer in self.answers.items():
            if needle in prompt:
                return answer
        return self.default


def _raising_oracle(prompt: str) -> str:
    raise ConnectionError("network unreachable")


def test_registry_has_eleven_unique_categories_ending_with_other() -> None:
    assert len(CATEGORIES) == 11
    assert len(set(CATEGORIES)) == len(CATEGORIES)
    assert CATEGORIES[0] == "Invoices"
    assert CATEGORIES[-1] == OTHER == "Other"


def test_is_category_requires_exact_match() -> None:
    assert is_category("Spreadsheets")
    assert not is_category("spreadsheets")
    assert not is_category(" Images")
    assert not is_category("")
    assert not is_category(None)


def test_build_prompt_lists_every_category_and_quotes_name() -> None:
    prompt = build_prompt("budget 2024.xlsx")

    assert ", ".join(CATEGORIES) in prompt
    assert 'File name: "budget 2024.xlsx"' in prompt
    assert 'classify it as "Other"' in prompt


def test_classifier_returns_valid_answer_after_trimming() -> None:
    oracle = _ScriptedOracle({"main.py": "  Code\n"})
    classifier = FileClassifier(oracle=oracle)

    decision = classifier.decide("main.py")

    assert decision.category == "Code"
    assert decision.raw_answer == "Code"
    assert not decision.fell_back
    assert len(oracle.prompts) == 1


@pytest.mark.parametrize("answer", ["Zzz", "", "images", "Images and Videos", 42, None])
def test_classifier_falls_back_to_other_on_unexpected_answer(answer: object) -> None:
    classifier = FileClassifier(oracle=_ScriptedOracle({}, default=answer))

    decision = classifier.decide("holiday.jpg")

    assert decision.category == OTHER
    assert decision.fallback_reason == "unexpected_answer"


def test_classifier_falls_back_to_other_when_oracle_raises(
    caplog: pytest.LogCaptureFixture,
) -> None:
    classifier = FileClassifier(oracle=_raising_oracle)

    with caplog.at_level(logging.ERROR, logger="sortwise.classification"):
        decision = classifier.decide("report.pdf")

    assert decision.category == OTHER
    assert decision.fallback_reason == "oracle_error"
    assert decision.raw_answer is None
    assert "report.pdf" in caplog.text
    assert "network unreachable" in caplog.text


def test_classifier_logs_unexpected_answer(caplog: pytest.LogCaptureFixture) -> None:
    classifier = FileClassifier(oracle=_ScriptedOracle({}, default="Zzz"))

    with caplog.at_level(logging.WARNING, logger="sortwise.classification"):
        category = classifier.classify("contract.docx")

    assert category == OTHER
    assert "Zzz" in caplog.text


def test_aclassify_runs_concurrently_and_preserves_answers() -> None:
    oracle = _ScriptedOracle({"a.png": "Images", "b.mp3": "Audio", "c.zip": "Archives"})
    classifier = FileClassifier(oracle=oracle)

    async def _run() -> list[str]:
        return list(
            await asyncio.gather(
                classifier.aclassify("a.png"),
                classifier.aclassify("b.mp3"),
                classifier.aclassify("c.zip"),
            )
        )

    assert asyncio.run(_run()) == ["Images", "Audio", "Archives"]


def test_llm_settings_qualify_model_with_provider() -> None:
    assert LLMSettings().qualified_model() == "gemini/gemini-2.5-flash"
    assert LLMSettings(provider="openai", model="gpt-4o-mini").qualified_model() == (
        "openai/gpt-4o-mini"
    )
    assert LLMSettings(model="ollama/llama3").qualified_model() == "ollama/llama3"
