"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Mapping, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import SortwiseConfig

ENV_PREFIX = "SORTWISE__"
_SOURCES = ("file", "environment", "cli")


def resolve_with_precedence(
    *,
    defaults: SortwiseConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> SortwiseConfig:
    """Merge configuration sources; later sources win (file, environment, CLI)."""
    merged = defaults.model_dump(mode="python")
    for name, source in zip(_SOURCES, (file_overrides, env_overrides, cli_overrides)):
        if source is None:
            continue
        merged = _deep_merge(merged, _normalize_mapping(source, source_name=name))

    try:
        return SortwiseConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: SortwiseConfig) -> dict[str, str]:
    """Flatten the config into ``SORTWISE__SECTION__KEY`` variable mappings."""
    flat: dict[str, str] = {}

    def _recurse(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _recurse(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            flat[env_key] = "null" if value is None else str(value)

    for top_key, child_value in config.model_dump(mode="python").items():
        _recurse([str(top_key)], child_value)
    return flat


def assign_dotted(
    target: dict[str, Any],
    path: Sequence[str],
    value: Any,
    *,
    replace_scalars: bool = False,
) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating mappings on the way.

    Args:
        target: Mapping to mutate in place.
        path: Keys leading to the value.
        value: Value to store at the leaf.
        replace_scalars: Overwrite non-mapping values met along the path
            instead of raising.

    Raises:
        ConfigError: If a non-mapping value blocks the path.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if not isinstance(existing, dict):
            if existing is not None and not replace_scalars:
                raise ConfigError(
                    f"Cannot assign into '{segment}' because it is not a mapping."
                )
            existing = {}
            node[segment] = existing
        node = existing
    node[path[-1]] = value


def _normalize_mapping(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in dict(source).items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = _normalize_mapping(value, source_name=source_name)
        path = key.split(".")
        try:
            existing = _lookup(result, path)
        except ConfigError:
            raise ConfigError(
                f"{source_name.capitalize()} override for {key} conflicts with existing value."
            ) from None
        if isinstance(existing, dict) and isinstance(value, dict):
            value = _deep_merge(existing, value)
        try:
            assign_dotted(result, path, value)
        except ConfigError as exc:
            raise ConfigError(
                f"{source_name.capitalize()} override for {key} conflicts with existing value."
            ) from exc
    return result


def _lookup(source: dict[str, Any], path: Sequence[str]) -> Any:
    node: Any = source
    for segment in path:
        if node is None:
            return None
        if not isinstance(node, dict):
            raise ConfigError(f"'{segment}' is not reachable through a mapping.")
        node = node.get(segment)
    return node


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "assign_dotted", "flatten_for_env", "resolve_with_precedence"]
