"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from sortwise.config import (
    ConfigError,
    ConfigManager,
    SortwiseConfig,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env={})


def test_ensure_exists_writes_commented_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".sortwise" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Sortwise configuration file")
    assert "Last updated:" in text
    assert "gemini-2.5-flash" in text

    assert manager.load() == SortwiseConfig()


def test_precedence_is_file_then_environment_then_cli(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"llm": {"model": "gpt-4o-mini", "temperature": 0.3}, "intake": {}})

    env = {
        "SORTWISE__LLM__TEMPERATURE": "0.7",
        "SORTWISE__INTAKE__PROCESS_HIDDEN_FILES": "false",
        "UNRELATED": "ignored",
    }
    config = manager.load(cli_overrides={"llm.temperature": 0.2}, env_overrides=env)

    assert config.llm.model == "gpt-4o-mini"
    assert config.intake.process_hidden_files is False
    # CLI beats environment, environment beats file
    assert config.llm.temperature == pytest.approx(0.2)

    config = manager.load(env_overrides=env)
    assert config.llm.temperature == pytest.approx(0.7)


def test_manager_reads_environment_given_at_construction(tmp_path: Path) -> None:
    manager = ConfigManager(
        tmp_path / "config.yaml", env={"SORTWISE__LOGGING__LEVEL": "DEBUG"}
    )

    assert manager.load().logging.level == "DEBUG"
    assert manager.load(include_env=False).logging.level == "WARNING"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"llm": {"modle": "typo"}})

    with pytest.raises(ConfigError):
        manager.load()


def test_set_value_persists_and_validates(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.set_value("cli.summary_default", True)
    assert manager.load().cli.summary_default is True

    with pytest.raises(ConfigError):
        manager.set_value("llm.max_tokens", "lots")
    with pytest.raises(ConfigError):
        manager.set_value("llm.model.name", "x")
    with pytest.raises(ConfigError):
        manager.set_value(" . ", "x")

    assert manager.load().llm.max_tokens == 64


def test_flatten_for_env_exposes_defaults() -> None:
    flat = flatten_for_env(SortwiseConfig())

    assert flat["SORTWISE__LLM__PROVIDER"] == "gemini"
    assert flat["SORTWISE__LLM__API_KEY"] == "null"
    assert flat["SORTWISE__INTAKE__PROCESS_HIDDEN_FILES"] == "True"
    assert flat["SORTWISE__LOGGING__MAX_SIZE_MB"] == "10"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=SortwiseConfig(),
            file_overrides={"logging": {"backup_count": "not-an-int"}},
        )
