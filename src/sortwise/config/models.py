"""Configuration models describing Sortwise settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SortwiseBaseModel(BaseModel):
    """Shared configuration for Sortwise Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LLMSettings(SortwiseBaseModel):
    """Language-model configuration for the file-name classifier.

    Attributes:
        provider: LiteLLM provider prefix prepended to ``model`` when it has none.
        model: Model name to target when issuing requests.
        temperature: Sampling temperature for generative calls.
        max_tokens: Maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional base URL for self-hosted or proxied endpoints.
    """

    provider: str = "gemini"
    model: str = "gemini-2.5-flash"
    temperature: float = 0.0
    max_tokens: int = 64
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None

    def qualified_model(self) -> str:
        """Return the model identifier including the provider prefix."""
        if not self.provider or "/" in self.model:
            return self.model
        return f"{self.provider}/{self.model}"


class IntakeOptions(SortwiseBaseModel):
    """Options governing folder intake.

    Attributes:
        process_hidden_files: Whether dot-prefixed files are classified.
    """

    process_hidden_files: bool = True


class LoggingSettings(SortwiseBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path; console-only when unset.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(SortwiseBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class SortwiseConfig(SortwiseBaseModel):
    """Top-level configuration struct for Sortwise.

    Attributes:
        llm: Language model settings.
        intake: Folder intake settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    intake: IntakeOptions = Field(default_factory=IntakeOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "SortwiseBaseModel",
    "LLMSettings",
    "IntakeOptions",
    "LoggingSettings",
    "CLIOptions",
    "SortwiseConfig",
]
