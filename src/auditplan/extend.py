from __future__ import annotations

from typing import Any, Mapping

from auditplan import constants
from auditplan.merge import deep_clone, merge
from auditplan.models import ConfigError


def _validate_mapping(value: Any, *, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{label} must be a mapping")
    return value


def _validate_passes(value: Any, *, label: str) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        raise ConfigError(f"{label} must be a list")
    for index, item in enumerate(value):
        _validate_mapping(item, label=f"{label}[{index}]")
    return value


def extend_config_json(
    base_json: Mapping[str, Any], extend_json: Mapping[str, Any]
) -> dict[str, Any]:
    """Layer *extend_json* on top of *base_json*.

    Passes are matched by ``passName`` (a nameless extension pass targets
    the default pass) and merged in place; unmatched passes are appended.
    Everything else goes through the generic merge.
    """
    base = dict(base_json)
    extension = dict(extend_json)

    if extension.get("passes") is not None and base.get("passes") is not None:
        passes = list(_validate_passes(base["passes"], label="base passes"))
        for pass_json in _validate_passes(extension["passes"], label="passes"):
            pass_name = pass_json.get("passName") or constants.DEFAULT_PASS_NAME
            match_index = next(
                (
                    index
                    for index, candidate in enumerate(passes)
                    if candidate.get("passName") == pass_name
                ),
                None,
            )
            if match_index is None:
                passes.append(pass_json)
            else:
                passes[match_index] = merge(passes[match_index], pass_json)
        base["passes"] = passes
        del extension["passes"]

    return merge(base, extension)


def resolve_extends(
    config_json: Mapping[str, Any],
    *,
    default_json: Mapping[str, Any],
    full_json: Mapping[str, Any],
) -> dict[str, Any]:
    """Apply the ``extends`` chain (default <- full <- user) if one is declared."""
    extends = config_json.get("extends")
    if extends == constants.FULL_CONFIG_TOKEN:
        exploded_full = extend_config_json(deep_clone(default_json), deep_clone(full_json))
        return extend_config_json(exploded_full, config_json)
    if extends:
        return extend_config_json(deep_clone(default_json), config_json)
    return dict(config_json)


def clean_flags_for_settings(flags: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Keep only the flags that name a known setting."""
    if not flags:
        return {}
    return {
        key: value
        for key, value in flags.items()
        if key in constants.DEFAULT_SETTINGS
    }


def init_settings(
    settings: Mapping[str, Any] | None = None,
    flags: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    if settings is None:
        settings = {}
    _validate_mapping(settings, label="settings")
    with_defaults = merge(deep_clone(constants.DEFAULT_SETTINGS), deep_clone(settings), True)
    return merge(with_defaults or {}, deep_clone(clean_flags_for_settings(flags)), True)


def augment_passes_with_defaults(
    passes: list[Mapping[str, Any]] | None,
) -> list[dict[str, Any]] | None:
    if passes is None:
        return None
    return [
        merge(deep_clone(constants.DEFAULT_PASS_CONFIG), pass_json)
        for pass_json in _validate_passes(passes, label="passes")
    ]


def adjust_default_pass_for_throttling(
    settings: Mapping[str, Any],
    passes: list[dict[str, Any]] | None,
) -> list[dict[str, Any]] | None:
    """Raise the default pass quiet windows when throttling is observed."""
    if not passes:
        return passes
    if settings.get("throttlingMethod") not in constants.OBSERVED_THROTTLING_METHODS:
        return passes

    adjusted: list[dict[str, Any]] = []
    for pass_json in passes:
        if pass_json.get("passName") == constants.DEFAULT_PASS_NAME:
            pass_json = dict(pass_json)
            for key, minimum in constants.NON_SIMULATED_PASS_CONFIG_OVERRIDES.items():
                pass_json[key] = max(minimum, pass_json.get(key) or 0)
        adjusted.append(pass_json)
    return adjusted


def check_unique_pass_names(passes: list[Mapping[str, Any]] | None) -> None:
    if not passes:
        return
    used: set[str] = set()
    for pass_json in passes:
        pass_name = pass_json.get("passName")
        if pass_name in used:
            raise ConfigError(
                f"Passes must have unique names (repeated passName: {pass_name})."
            )
        used.add(pass_name)
