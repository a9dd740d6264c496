"""Command line interface for the Sortwise project."""

from __future__ import annotations

import asyncio
import contextlib
import difflib
import sys
from pathlib import Path
from typing import Any, Iterator, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from sortwise.categories import CATEGORIES
from sortwise.classification import ClassificationDecision, FileClassifier
from sortwise.config import (
    ConfigError,
    ConfigManager,
    SortwiseConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from sortwise.host.base import AccessMode, FolderPicker
from sortwise.host.local import PathFolderPicker, PromptFolderPicker
from sortwise.intake import load_uploads
from sortwise.logs import configure_logging
from sortwise.organization import DiskOrganizer, OrganizeResult
from sortwise.session import ClassificationOrchestrator, SessionState, join_all

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    if summary_only and mode not in {"summary", "warning", "error"}:
        return

    console.print(message)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {escape(str(target))}: {parts}.[/green]"


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def _resolve_output_modes(
    ctx: click.Context,
    config: SortwiseConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Combine CLI flags with configured defaults into (quiet, summary_only).

    Raises:
        click.ClickException: If the requested modes conflict.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config(ctx: click.Context) -> SortwiseConfig:
    """Load the effective configuration and set up logging for the command."""

    config = ConfigManager().load()
    verbose = bool((ctx.find_root().obj or {}).get("verbose"))
    configure_logging(config.logging, verbose=verbose)
    return config


def _build_classifier(config: SortwiseConfig) -> FileClassifier:
    """Return the classifier used by CLI commands."""

    return FileClassifier(config.llm)


def _confirm_write_access(mode: AccessMode, path: Path) -> bool:
    """Ask the user to grant write access to a picked folder."""

    try:
        return click.confirm(
            f"Allow Sortwise to move files into category folders inside {path}?",
            default=False,
        )
    except click.Abort:
        return False


def _ask_for_folder() -> Optional[str]:
    """Prompt for a folder path; ``None`` when the prompt is aborted."""

    try:
        return click.prompt("Folder to organize", default="", show_default=False)
    except click.Abort:
        return None


def _folder_picker(path: Optional[Path], *, assume_yes: bool) -> Optional[FolderPicker]:
    """Return the folder picker for this invocation, or ``None`` if unavailable."""

    granted = {AccessMode.READWRITE} if assume_yes else None
    if path is not None:
        return PathFolderPicker(path, confirm=_confirm_write_access, granted=granted)
    if not sys.stdin.isatty():
        return None
    return PromptFolderPicker(_ask_for_folder, confirm=_confirm_write_access, granted=granted)


def _without_stamp(lines: list[str]) -> list[str]:
    return [line for line in lines if not line.startswith("# Last updated:")]


@contextlib.contextmanager
def _status(message: str, *, enabled: bool) -> Iterator[None]:
    if not enabled:
        yield
        return
    with console.status(message):
        yield


def _files_payload(state: SessionState) -> list[dict[str, Any]]:
    return [
        {**file.model_dump(mode="json"), "movable": file.movable} for file in state.files
    ]


def _render_browser(
    state: SessionState,
    *,
    selected: Optional[str],
    quiet: bool,
    summary_only: bool,
) -> None:
    """Render the category sidebar followed by one file table per category."""

    grouped = state.by_category()
    if not grouped:
        return

    sidebar = Table(title="Categories")
    sidebar.add_column("Category")
    sidebar.add_column("Files", justify="right")
    for category, members in grouped.items():
        marker = " *" if category == selected else ""
        sidebar.add_row(f"{category}{marker}", str(len(members)))
    _emit_message(sidebar, mode="detail", quiet=quiet, summary_only=summary_only)

    for category, members in grouped.items():
        if selected and category != selected:
            continue
        table = Table(title=category)
        table.add_column("Name")
        table.add_column("Size", justify="right")
        table.add_column("Type")
        for file in sorted(members, key=lambda item: item.name.lower()):
            table.add_row(escape(file.name), _format_size(file.size), escape(file.type or "-"))
        _emit_message(table, mode="detail", quiet=quiet, summary_only=summary_only)


def _render_decisions(decisions: list[ClassificationDecision]) -> Table:
    table = Table(title="Classifications")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Note")
    for decision in decisions:
        note = ""
        if decision.fallback_reason == "unexpected_answer":
            note = f"unexpected answer {decision.raw_answer!r}"
        elif decision.fallback_reason == "oracle_error":
            note = "classifier unavailable"
        table.add_row(escape(decision.file_name), decision.category, escape(note))
    return table


def _render_organize_result(
    result: OrganizeResult,
    *,
    quiet: bool,
    summary_only: bool,
) -> None:
    if result.dry_run:
        if not result.planned:
            _emit_message(
                "[yellow]No files would be moved.[/yellow]",
                mode="detail",
                quiet=quiet,
                summary_only=summary_only,
            )
            return
        table = Table(title="Planned moves")
        table.add_column("File")
        table.add_column("Destination")
        for move in result.planned:
            table.add_row(escape(move.name), escape(move.destination))
        _emit_message(table, mode="detail", quiet=quiet, summary_only=summary_only)
        return

    if result.failed:
        _emit_message(
            f"[yellow]{len(result.failed)} file(s) could not be moved:[/yellow]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )
        for name, error in result.failed.items():
            _emit_message(
                f"  - {escape(name)}: {escape(error)}",
                mode="warning",
                quiet=quiet,
                summary_only=summary_only,
            )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="sortwise")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Sortwise sorts your files into categories using an AI classifier."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Emit classifications as JSON.")
@click.pass_context
def classify(ctx: click.Context, names: tuple[str, ...], json_output: bool) -> None:
    """Classify bare file NAMES without reading any files.

    Args:
        ctx: Click context.
        names: File names to classify.
        json_output: If True, emit JSON instead of a table.
    """
    try:
        config = _load_config(ctx)
        classifier = _build_classifier(config)
        with _status("Classifying file names...", enabled=not json_output):
            decisions = asyncio.run(join_all(classifier.adecide(name) for name in names))

        if json_output:
            console.print_json(
                data={"decisions": [decision.model_dump(mode="json") for decision in decisions]}
            )
            return
        console.print(_render_decisions(decisions))
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)


@cli.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--category",
    type=click.Choice(CATEGORIES),
    help="Only list files in this category.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit classified files as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def upload(
    ctx: click.Context,
    files: tuple[Path, ...],
    category: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Classify FILES read into memory and list them by category.

    Uploaded files are classified but never moved; use `sortwise org` to
    reorganize a folder on disk.

    Args:
        ctx: Click context used for parameter source inspection.
        files: Files to classify.
        category: Optional category pane to show.
        json_output: If True, emit JSON.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.
    """
    try:
        config = _load_config(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )

        uploads = load_uploads(files)
        orchestrator = ClassificationOrchestrator(_build_classifier(config))
        with _status("Classifying files...", enabled=not (json_output or quiet_enabled)):
            state = asyncio.run(orchestrator.upload(uploads))

        failed = len(uploads) - len(state.files)
        if json_output:
            payload: dict[str, Any] = {
                "files": _files_payload(state),
                "counts": {"classified": len(state.files), "failed": failed},
            }
            if state.error:
                payload["warning"] = {"code": state.error_code, "message": state.error}
            console.print_json(data=payload)
            return

        _render_browser(state, selected=category, quiet=quiet_enabled, summary_only=summary_only)
        if state.error:
            _emit_message(
                f"[yellow]{escape(state.error)}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Upload",
                f"{len(uploads)} file(s)",
                {"classified": len(state.files), "failed": failed},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except OSError as exc:
        _handle_cli_error(
            f"Unable to read uploaded files: {exc}",
            code="upload_read_error",
            json_output=json_output,
            original=exc,
        )


@cli.command()
@click.argument(
    "path",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--dry-run", is_flag=True, help="Show planned moves without touching files.")
@click.option(
    "-y",
    "--yes",
    "assume_yes",
    is_flag=True,
    help="Grant write access up front instead of asking.",
)
@click.option(
    "--category",
    type=click.Choice(CATEGORIES),
    help="Only list files in this category.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def org(
    ctx: click.Context,
    path: Optional[Path],
    dry_run: bool,
    assume_yes: bool,
    category: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Classify the files directly inside PATH and move them into category folders.

    When PATH is omitted on an interactive terminal, Sortwise asks for one.
    Files classified as Other stay where they are.

    Args:
        ctx: Click context used for parameter source inspection.
        path: Folder to organize.
        dry_run: If True, only list the planned moves.
        assume_yes: If True, write access is granted without a prompt.
        category: Optional category pane to show.
        json_output: If True, emit JSON.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.

    Raises:
        click.ClickException: If the folder cannot be read or organized.
    """
    try:
        config = _load_config(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        if json_output and not (assume_yes or dry_run):
            raise click.ClickException("--json requires --yes or --dry-run.")

        orchestrator = ClassificationOrchestrator(
            _build_classifier(config),
            DiskOrganizer(),
            include_hidden=config.intake.process_hidden_files,
        )
        picker = _folder_picker(path, assume_yes=assume_yes)
        spinner = path is not None and not (json_output or quiet_enabled)
        with _status("Classifying files...", enabled=spinner):
            state = asyncio.run(orchestrator.pick_folder(picker))

        if state.error:
            _handle_cli_error(
                state.error, code=state.error_code or "error", json_output=json_output
            )
        if state.directory is None:
            return

        root = getattr(state.directory, "path", state.directory.name)
        payload: dict[str, Any] = {
            "context": {"root": str(root), "dry_run": dry_run},
            "files": _files_payload(state),
        }
        if not json_output:
            _render_browser(
                state, selected=category, quiet=quiet_enabled, summary_only=summary_only
            )

        if not state.files:
            if json_output:
                console.print_json(data=payload)
                return
            _emit_message(
                "[yellow]No files found in the selected folder.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        if dry_run or not any(file.eligible for file in state.files):
            result = asyncio.run(orchestrator.organize(dry_run=True))
        else:
            _emit_message(
                "[cyan]Organizing files on disk...[/cyan]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            result = asyncio.run(orchestrator.organize())
            final_state = orchestrator.state
            if final_state.error:
                _handle_cli_error(
                    final_state.error,
                    code=final_state.error_code or "organize_error",
                    json_output=json_output,
                )
            if final_state.notice:
                _emit_message(
                    f"[green]{escape(final_state.notice)}[/green]",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )

        if result is None:
            raise click.ClickException("Nothing to organize in the selected folder.")
        payload["organize"] = result.model_dump(mode="json")
        if json_output:
            console.print_json(data=payload)
            return

        _render_organize_result(result, quiet=quiet_enabled, summary_only=summary_only)
        metrics: dict[str, Any] = {
            "classified": len(state.files),
            "planned": len(result.planned),
            "moved": result.moved_count,
            "failed": len(result.failed),
        }
        if result.dry_run:
            metrics["dry_run"] = True
        _emit_message(
            _format_summary_line("Organization", root, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while organizing files: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.group()
def config() -> None:
    """Manage Sortwise configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("env")
def config_env() -> None:
    """List the environment variables that override each setting."""
    manager = ConfigManager()
    try:
        config = manager.load(include_env=False)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    for key, value in flatten_for_env(config).items():
        console.print(f"{key}={escape(value)}", highlight=False)


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text().splitlines()

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    after = manager.read_text().splitlines()
    if _without_stamp(before) == _without_stamp(after):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {escape(key)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=SortwiseConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
