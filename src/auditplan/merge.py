from __future__ import annotations

from typing import Any, Mapping

from auditplan.models import MergeTypeError

MISSING: Any = object()


def deep_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left.keys()) != set(right.keys()):
            return False
        return all(deep_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (Mapping, list, tuple)) or isinstance(
        right, (Mapping, list, tuple)
    ):
        return False
    return left is right or left == right


def deep_clone(value: Any) -> Any:
    """Copy the dict/list skeleton of a config tree.

    Anything that is not a mapping or a list (plugin classes, gatherer
    instances, scalars) is shared with the source rather than copied, so
    programmatically injected plugins survive cloning.
    """
    if isinstance(value, Mapping):
        return {str(key): deep_clone(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [deep_clone(item) for item in value]
    return value


def deep_clone_config_json(config_json: Mapping[str, Any]) -> dict[str, Any]:
    return deep_clone(config_json)


def _type_label(value: Any) -> str:
    if isinstance(value, list):
        return "list"
    if isinstance(value, Mapping):
        return "mapping"
    return type(value).__name__


def merge(base: Any, extension: Any = MISSING, overwrite_arrays: bool = False) -> Any:
    """Recursively merge *extension* onto *base* and return the result.

    Lists are unioned (base order first, novel extension items appended)
    unless *overwrite_arrays* is set. Anything under a ``settings`` key is
    merged with list overwrite. Neither argument is mutated.
    """
    if extension is MISSING:
        return base
    if base is None or base is MISSING:
        return extension
    if isinstance(extension, (list, tuple)):
        if overwrite_arrays:
            return list(extension)
        if not isinstance(base, (list, tuple)):
            raise MergeTypeError(f"Expected list but got {_type_label(base)}")
        merged = list(base)
        for item in extension:
            if not any(deep_equal(candidate, item) for candidate in merged):
                merged.append(item)
        return merged
    if isinstance(extension, Mapping):
        if isinstance(base, (list, tuple)):
            raise MergeTypeError("Expected mapping but got list")
        if not isinstance(base, Mapping):
            raise MergeTypeError(f"Expected mapping but got {_type_label(base)}")
        merged_map = dict(base)
        for key, value in extension.items():
            local_overwrite = overwrite_arrays or (
                key == "settings" and isinstance(base.get(key), Mapping)
            )
            merged_map[key] = merge(base.get(key, MISSING), value, local_overwrite)
        return merged_map
    return extension
