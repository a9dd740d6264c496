"""Tests for the classification orchestrator session flows."""

from __future__ import annotations

import asyncio
import logging
import threading

import pytest

from sortwise.categories import Category
from sortwise.classification import FileClassifier
from sortwise.host.base import AccessMode, PermissionState
from sortwise.host.errors import CapabilityUnsupportedError
from sortwise.host.memory import MemoryFilesystem, MemoryFolderPicker
from sortwise.intake import IntakeFile
from sortwise.session import (
    CAPABILITY_UNSUPPORTED_MESSAGE,
    FOLDER_READ_MESSAGE,
    ORGANIZE_FAILED_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
    ClassificationOrchestrator,
    SessionState,
)


class _FakeClassifier:
    """Classifier returning fixed categories and optionally raising for some names."""

    def __init__(
        self,
        categories: dict[str, Category],
        failing: set[str] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.categories = categories
        self.failing = failing or set()
        self.delays = delays or {}
        self.calls: list[str] = []

    async def aclassify(self, file_name: str) -> Category:
        self.calls.append(file_name)
        await asyncio.sleep(self.delays.get(file_name, 0))
        if file_name in self.failing:
            raise RuntimeError(f"classifier crashed on {file_name}")
        return self.categories.get(file_name, "Other")


def _uploads(*names: str) -> list[IntakeFile]:
    return [IntakeFile.from_bytes(name, name.encode()) for name in names]


def _writable_fs(files: dict[str, bytes]) -> MemoryFilesystem:
    return MemoryFilesystem(
        files=files, permissions={AccessMode.READWRITE: PermissionState.GRANTED}
    )


def test_upload_classifies_files_without_handles() -> None:
    classifier = _FakeClassifier({"invoice_march.pdf": "Invoices", "photo.png": "Images"})
    orchestrator = ClassificationOrchestrator(classifier)

    state = asyncio.run(orchestrator.upload(_uploads("invoice_march.pdf", "photo.png")))

    assert [(file.name, file.category) for file in state.files] == [
        ("invoice_march.pdf", "Invoices"),
        ("photo.png", "Images"),
    ]
    assert all(not file.movable for file in state.files)
    assert state.error is None
    assert not state.loading
    assert not state.can_organize


def test_upload_with_no_files_is_a_no_op() -> None:
    classifier = _FakeClassifier({})
    orchestrator = ClassificationOrchestrator(classifier)
    before = orchestrator.state

    state = asyncio.run(orchestrator.upload([]))

    assert state is before
    assert classifier.calls == []


def test_upload_keeps_successes_and_reports_failure_count(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Survivors keep their own size, type and category when calls finish out of order."""
    uploads = [
        IntakeFile.from_bytes("a.png", b"x" * 10),
        IntakeFile.from_bytes("b.txt", b"x" * 20),
        IntakeFile.from_bytes("c.mp4", b"x" * 30),
        IntakeFile.from_bytes("d.zip", b"x" * 40),
        IntakeFile.from_bytes("e.csv", b"x" * 50),
    ]
    classifier = _FakeClassifier(
        {"a.png": "Images", "c.mp4": "Videos", "e.csv": "Spreadsheets"},
        failing={"b.txt", "d.zip"},
        delays={"a.png": 0.05, "b.txt": 0.04, "c.mp4": 0.03, "d.zip": 0.02, "e.csv": 0.0},
    )
    orchestrator = ClassificationOrchestrator(classifier)

    with caplog.at_level(logging.ERROR, logger="sortwise.session"):
        state = asyncio.run(orchestrator.upload(uploads))

    assert [(file.name, file.size, file.type, file.category) for file in state.files] == [
        ("a.png", 10, "image/png", "Images"),
        ("c.mp4", 30, "video/mp4", "Videos"),
        ("e.csv", 50, "text/csv", "Spreadsheets"),
    ]
    assert state.error == "2 files could not be classified. Please try again."
    assert state.error_code == "classification_warning"
    assert "b.txt" in caplog.text
    assert "d.zip" in caplog.text


def test_upload_classifies_every_file_at_once() -> None:
    """All oracle calls of one upload are in flight together, however many files there are."""
    count = 64
    barrier = threading.Barrier(count, timeout=10)
    lock = threading.Lock()
    live = {"now": 0, "peak": 0}

    def _oracle(prompt: str) -> str:
        with lock:
            live["now"] += 1
            live["peak"] = max(live["peak"], live["now"])
        try:
            barrier.wait()
        finally:
            with lock:
                live["now"] -= 1
        return "Images"

    orchestrator = ClassificationOrchestrator(FileClassifier(oracle=_oracle))
    names = [f"photo_{index:02d}.png" for index in range(count)]

    state = asyncio.run(orchestrator.upload(_uploads(*names)))

    assert live["peak"] == count
    assert [file.name for file in state.files] == names
    assert {file.category for file in state.files} == {"Images"}
    assert state.error is None


def test_upload_replaces_previous_session() -> None:
    classifier = _FakeClassifier({"a.png": "Images", "b.csv": "Spreadsheets"})
    orchestrator = ClassificationOrchestrator(classifier)
    fs = _writable_fs({"a.png": b"png"})
    asyncio.run(orchestrator.pick_folder(fs.picker()))

    state = asyncio.run(orchestrator.upload(_uploads("b.csv")))

    assert [file.name for file in state.files] == ["b.csv"]
    assert state.directory is None


def test_pick_folder_with_invalid_answer_falls_back_to_other(
    caplog: pytest.LogCaptureFixture,
) -> None:
    fs = MemoryFilesystem(files={"contract.docx": b"doc"})
    orchestrator = ClassificationOrchestrator(FileClassifier(oracle=lambda prompt: "Zzz"))

    with caplog.at_level(logging.WARNING, logger="sortwise.classification"):
        state = asyncio.run(orchestrator.pick_folder(fs.picker()))

    assert len(state.files) == 1
    assert state.files[0].category == "Other"
    assert state.files[0].movable
    assert state.directory is fs.root
    assert state.error is None
    assert "Zzz" in caplog.text


def test_pick_folder_skips_subdirectories_and_optionally_hidden_files() -> None:
    fs = MemoryFilesystem(files={"a.png": b"png", ".env": b"SECRET=1"})
    fs.root.add_directory("Images")
    classifier = _FakeClassifier({"a.png": "Images"})

    visible = ClassificationOrchestrator(classifier, include_hidden=False)
    state = asyncio.run(visible.pick_folder(fs.picker()))
    assert [file.name for file in state.files] == ["a.png"]

    everything = ClassificationOrchestrator(classifier)
    state = asyncio.run(everything.pick_folder(fs.picker()))
    assert sorted(file.name for file in state.files) == [".env", "a.png"]


def test_pick_folder_cancel_leaves_state_unchanged() -> None:
    classifier = _FakeClassifier({"a.png": "Images"})
    orchestrator = ClassificationOrchestrator(classifier)
    asyncio.run(orchestrator.upload(_uploads("a.png")))
    before = orchestrator.state

    state = asyncio.run(orchestrator.pick_folder(MemoryFolderPicker.cancelled()))

    assert state is before
    assert classifier.calls == ["a.png"]


def test_pick_folder_without_picker_reports_unsupported_capability() -> None:
    classifier = _FakeClassifier({"a.png": "Images"})
    orchestrator = ClassificationOrchestrator(classifier)
    asyncio.run(orchestrator.upload(_uploads("a.png")))

    state = asyncio.run(orchestrator.pick_folder(None))

    assert state.error == CAPABILITY_UNSUPPORTED_MESSAGE
    assert state.error_code == "capability_unsupported"
    assert [file.name for file in state.files] == ["a.png"]


def test_pick_folder_unsupported_error_from_picker() -> None:
    orchestrator = ClassificationOrchestrator(_FakeClassifier({}))
    picker = MemoryFolderPicker(None, error=CapabilityUnsupportedError("no dialogs"))

    state = asyncio.run(orchestrator.pick_folder(picker))

    assert state.error_code == "capability_unsupported"


def test_pick_folder_enumeration_failure_clears_session() -> None:
    fs = MemoryFilesystem(files={"a.png": b"png"})
    fs.enumeration_error = PermissionError("listing refused")
    orchestrator = ClassificationOrchestrator(_FakeClassifier({"b.csv": "Spreadsheets"}))
    asyncio.run(orchestrator.upload(_uploads("b.csv")))

    state = asyncio.run(orchestrator.pick_folder(fs.picker()))

    assert state.files == ()
    assert state.directory is None
    assert state.error == FOLDER_READ_MESSAGE
    assert state.error_code == "folder_read_error"


def test_pick_folder_fails_as_a_unit_when_one_classification_fails() -> None:
    fs = MemoryFilesystem(files={"a.png": b"png", "b.csv": b"1,2"})
    classifier = _FakeClassifier({"a.png": "Images"}, failing={"b.csv"})
    orchestrator = ClassificationOrchestrator(classifier)

    state = asyncio.run(orchestrator.pick_folder(fs.picker()))

    assert state.files == ()
    assert state.error_code == "folder_read_error"


def test_pick_folder_read_failure_is_reported() -> None:
    fs = MemoryFilesystem(files={"a.png": b"png"})
    fs.fail_reads.add("a.png")
    orchestrator = ClassificationOrchestrator(_FakeClassifier({}))

    state = asyncio.run(orchestrator.pick_folder(fs.picker()))

    assert state.error == FOLDER_READ_MESSAGE


def test_organize_moves_files_and_resets_session() -> None:
    fs = _writable_fs({"notes.txt": b"hi", "mystery.bin": b"?"})
    orchestrator = ClassificationOrchestrator(_FakeClassifier({"notes.txt": "Documents"}))
    asyncio.run(orchestrator.pick_folder(fs.picker()))

    result = asyncio.run(orchestrator.organize())

    assert result is not None
    assert result.moved_count == 1
    assert orchestrator.state == SessionState(notice="Successfully organized 1 files!")
    assert fs.root.listing() == {"mystery.bin": b"?", "Documents": {"notes.txt": b"hi"}}


def test_organize_without_folder_does_nothing() -> None:
    orchestrator = ClassificationOrchestrator(_FakeClassifier({"a.png": "Images"}))
    asyncio.run(orchestrator.upload(_uploads("a.png")))
    before = orchestrator.state

    assert asyncio.run(orchestrator.organize()) is None
    assert orchestrator.state is before


def test_organize_dry_run_keeps_session() -> None:
    fs = _writable_fs({"main.py": b"print()"})
    orchestrator = ClassificationOrchestrator(_FakeClassifier({"main.py": "Code"}))
    before = asyncio.run(orchestrator.pick_folder(fs.picker()))

    result = asyncio.run(orchestrator.organize(dry_run=True))

    assert result is not None
    assert [move.destination for move in result.planned] == ["Code/main.py"]
    assert orchestrator.state is before
    assert fs.root.listing() == {"main.py": b"print()"}


def test_organize_permission_denied_keeps_files() -> None:
    fs = MemoryFilesystem(
        files={"a.png": b"png"},
        request_answers={AccessMode.READWRITE: PermissionState.DENIED},
    )
    orchestrator = ClassificationOrchestrator(_FakeClassifier({"a.png": "Images"}))
    asyncio.run(orchestrator.pick_folder(fs.picker()))

    result = asyncio.run(orchestrator.organize())

    assert result is None
    state = orchestrator.state
    assert state.error == PERMISSION_DENIED_MESSAGE
    assert state.error_code == "permission_denied"
    assert [file.name for file in state.files] == ["a.png"]
    assert not state.organizing
    assert fs.root.listing() == {"a.png": b"png"}


def test_organize_unexpected_failure_is_reported() -> None:
    fs = MemoryFilesystem(files={"a.png": b"png"})
    fs.permission_error = OSError("prompt crashed")
    orchestrator = ClassificationOrchestrator(_FakeClassifier({"a.png": "Images"}))
    asyncio.run(orchestrator.pick_folder(fs.picker()))

    assert asyncio.run(orchestrator.organize()) is None
    assert orchestrator.state.error == ORGANIZE_FAILED_MESSAGE
    assert orchestrator.state.error_code == "organize_error"


def test_by_category_uses_registry_order() -> None:
    classifier = _FakeClassifier(
        {"z.zip": "Archives", "a.pdf": "Invoices", "m.png": "Images", "n.png": "Images"}
    )
    orchestrator = ClassificationOrchestrator(classifier)

    state = asyncio.run(orchestrator.upload(_uploads("z.zip", "m.png", "a.pdf", "n.png")))

    grouped = state.by_category()
    assert list(grouped) == ["Invoices", "Images", "Archives"]
    assert [file.name for file in grouped["Images"]] == ["m.png", "n.png"]
