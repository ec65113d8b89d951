from __future__ import annotations

from typing import Any, Mapping

from auditplan.models import ConfigError

_AUDIT_RECORD_KEYS = ("implementation", "path")
_GATHERER_RECORD_KEYS = ("instance", "implementation", "path")


def _describe(entry: Any) -> str:
    if isinstance(entry, type):
        return f"class {entry.__name__}"
    return repr(entry)


def _options_of(entry: Mapping[str, Any], *, label: str) -> dict[str, Any]:
    options = entry.get("options")
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise ConfigError(f"{label}.options must be a mapping")
    return dict(options)


def _canonical_record(
    entry: Mapping[str, Any], *, keys: tuple[str, ...], label: str
) -> dict[str, Any] | None:
    record = {key: entry[key] for key in keys if entry.get(key) is not None}
    if not record:
        return None
    path = record.get("path")
    if "path" in record and (not isinstance(path, str) or not path.strip()):
        raise ConfigError(f"{label}.path must be a non-empty string")
    record["options"] = _options_of(entry, label=label)
    return record


def normalize_audit_entry(entry: Any, *, label: str = "audit") -> dict[str, Any]:
    """Expand one audit shorthand into ``{path?, implementation?, options}``.

    Accepted forms:

    - ``"audit-name"``
    - ``{"path": "audit-name", "options": {...}}``
    - ``{"implementation": AuditClass, "options": {...}}``
    - ``AuditClass`` (anything with a callable ``audit``)
    """
    if isinstance(entry, str):
        if not entry.strip():
            raise ConfigError(f"{label} must be a non-empty string")
        return {"path": entry, "options": {}}
    if isinstance(entry, Mapping):
        record = _canonical_record(entry, keys=_AUDIT_RECORD_KEYS, label=label)
        if record is not None:
            return record
    elif callable(getattr(entry, "audit", None)):
        return {"implementation": entry, "options": {}}
    raise ConfigError(f"Invalid Audit type {_describe(entry)}")


def normalize_gatherer_entry(entry: Any, *, label: str = "gatherer") -> dict[str, Any]:
    """Expand one gatherer shorthand into ``{path?, implementation?, instance?, options}``.

    Accepted forms:

    - ``"gatherer-name"``
    - ``GathererClass``
    - ``gatherer_instance`` (anything with a callable ``before_pass``)
    - a mapping holding ``path``, ``implementation`` or ``instance``
    """
    if isinstance(entry, str):
        if not entry.strip():
            raise ConfigError(f"{label} must be a non-empty string")
        return {"path": entry, "options": {}}
    if isinstance(entry, type):
        return {"implementation": entry, "options": {}}
    if isinstance(entry, Mapping):
        record = _canonical_record(entry, keys=_GATHERER_RECORD_KEYS, label=label)
        if record is not None:
            return record
    elif callable(getattr(entry, "before_pass", None)):
        return {"instance": entry, "options": {}}
    raise ConfigError(f"Invalid Gatherer type {_describe(entry)}")


def merge_options_of_items(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Fold entries that share a ``path``; later options win key by key."""
    merged_items: list[dict[str, Any]] = []
    by_path: dict[str, dict[str, Any]] = {}
    for item in items:
        path = item.get("path")
        existing = by_path.get(path) if path else None
        if existing is None:
            record = dict(item)
            merged_items.append(record)
            if path:
                by_path[path] = record
            continue
        existing["options"] = {**existing.get("options", {}), **item.get("options", {})}
    return merged_items


def expand_audit_shorthand_and_merge_options(
    audits: list[Any] | None,
) -> list[dict[str, Any]] | None:
    if audits is None:
        return None
    if not isinstance(audits, list):
        raise ConfigError("audits must be a list")
    expanded = [
        normalize_audit_entry(entry, label=f"audits[{index}]")
        for index, entry in enumerate(audits)
    ]
    return merge_options_of_items(expanded)


def expand_gatherer_shorthand_and_merge_options(
    passes: list[dict[str, Any]] | None,
) -> list[dict[str, Any]] | None:
    if passes is None:
        return None
    expanded_passes: list[dict[str, Any]] = []
    for pass_json in passes:
        pass_name = pass_json.get("passName")
        gatherers = pass_json.get("gatherers") or []
        if not isinstance(gatherers, list):
            raise ConfigError(f"passes[{pass_name}].gatherers must be a list")
        expanded = [
            normalize_gatherer_entry(entry, label=f"passes[{pass_name}].gatherers[{index}]")
            for index, entry in enumerate(gatherers)
        ]
        expanded_passes.append({**pass_json, "gatherers": merge_options_of_items(expanded)})
    return expanded_passes
