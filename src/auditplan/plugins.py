from __future__ import annotations

import hashlib
import importlib
import importlib.util
import inspect
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Literal, Mapping, Protocol

from auditplan.audits.audit import Audit
from auditplan.audits.builtins import BUILTIN_AUDITS
from auditplan.gather.builtins import BUILTIN_GATHERERS
from auditplan.gather.gatherer import Gatherer
from auditplan.models import AuditDefn, ConfigError, GathererDefn, PluginNotFoundError

_log = logging.getLogger("auditplan.plugins")

PluginKind = Literal["audit", "gatherer"]

_GATHERER_LIFECYCLE = ("before_pass", "during_pass", "after_pass")


class PluginResolver(Protocol):
    def resolve(self, reference: str, base_dir: str | None, kind: PluginKind) -> Any: ...


def get_audit_list() -> list[str]:
    return sorted(BUILTIN_AUDITS.keys())


def get_gatherer_list() -> list[str]:
    return sorted(BUILTIN_GATHERERS.keys())


def _plugin_base(kind: PluginKind) -> type:
    return Audit if kind == "audit" else Gatherer


def _load_module_from_file(path: Path, kind: PluginKind) -> ModuleType:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    module_name = f"auditplan_plugin_{path.stem}_{digest}"
    existing = sys.modules.get(module_name)
    if existing is not None:
        return existing
    spec = importlib.util.spec_from_file_location(module_name, str(path))
    if spec is None or spec.loader is None:
        raise PluginNotFoundError(f"Unable to load plugin module from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise ConfigError(f"Failed loading {kind} plugin {path}: {exc}") from exc
    return module


def _pick_implementation(module: ModuleType, *, kind: PluginKind, reference: str) -> Any:
    base = _plugin_base(kind)
    candidates = [
        value
        for name, value in vars(module).items()
        if not name.startswith("_")
        and inspect.isclass(value)
        and issubclass(value, base)
        and value is not base
        and value.__module__ == module.__name__
    ]
    if len(candidates) != 1:
        found = ", ".join(sorted(item.__name__ for item in candidates)) or "<none>"
        raise PluginNotFoundError(
            f"{kind} plugin '{reference}' must define exactly one {base.__name__} "
            f"subclass or name one with 'module:Attr' (found: {found})"
        )
    return candidates[0]


@dataclass
class ModulePluginResolver:
    """Resolve plugin references with importlib.

    References take one of these shapes:

    - ``"package.module:Attr"``: import the module, return ``Attr``
    - ``"plugins/custom_audit"`` or ``"custom_audit.py"``: a file relative to
      the config directory (then the working directory)
    - ``"package.module"``: an importable module

    Without an explicit ``:Attr``, the module must define exactly one public
    subclass of :class:`Audit` or :class:`Gatherer` matching *kind*.
    """

    search_cwd: bool = True

    def _candidate_files(self, reference: str, base_dir: str | None) -> list[Path]:
        roots: list[Path] = []
        if base_dir:
            roots.append(Path(base_dir))
        if self.search_cwd:
            roots.append(Path.cwd())
        names = [reference] if reference.endswith(".py") else [f"{reference}.py", reference]
        out: list[Path] = []
        for name in names:
            candidate = Path(name)
            if candidate.is_absolute():
                out.append(candidate)
                continue
            out.extend(root / candidate for root in roots)
        return out

    def resolve(self, reference: str, base_dir: str | None, kind: PluginKind) -> Any:
        module_ref, _, attr = reference.partition(":")
        module: ModuleType | None = None

        for candidate in self._candidate_files(module_ref, base_dir):
            if candidate.is_file():
                _log.debug("plugin_resolve kind=%s ref=%s file=%s", kind, reference, candidate)
                module = _load_module_from_file(candidate.resolve(), kind)
                break

        if module is None:
            try:
                module = importlib.import_module(module_ref)
            except (ImportError, ValueError, TypeError) as exc:
                raise PluginNotFoundError(
                    f"Unable to locate {kind}: {reference} (tried the config directory, "
                    f"the working directory and the module path): {exc}"
                ) from exc

        if attr:
            if not hasattr(module, attr):
                raise PluginNotFoundError(
                    f"{kind} plugin module '{module_ref}' has no attribute '{attr}'"
                )
            return getattr(module, attr)
        return _pick_implementation(module, kind=kind, reference=reference)


def assert_valid_audit(implementation: Any, audit_path: str | None = None) -> None:
    meta = getattr(implementation, "meta", None)
    if not isinstance(meta, Mapping):
        meta = {}
    audit_name = audit_path or meta.get("name") or getattr(implementation, "__name__", "audit")

    audit_fn = getattr(implementation, "audit", None)
    if not callable(audit_fn) or getattr(audit_fn, "__func__", audit_fn) is Audit.audit.__func__:
        raise ConfigError(f"{audit_name} has no audit() method.")

    if not isinstance(meta.get("name"), str):
        raise ConfigError(
            f"{audit_name} has no meta.name property, or the property is not a string."
        )

    if not isinstance(meta.get("description"), str):
        raise ConfigError(
            f"{audit_name} has no meta.description property, or the property is not a string."
        )

    if (
        not isinstance(meta.get("failure_description"), str)
        and meta.get("score_display_mode") == Audit.SCORING_MODES["BINARY"]
    ):
        raise ConfigError(f"{audit_name} has no failure_description and should.")

    if not isinstance(meta.get("required_artifacts"), (list, tuple)):
        raise ConfigError(
            f"{audit_name} has no meta.required_artifacts property, or the property is not a list."
        )


def assert_valid_gatherer(instance: Any, gatherer_name: str | None = None) -> None:
    gatherer_name = (
        gatherer_name or getattr(instance, "name", None) or type(instance).__name__
    )
    for method in _GATHERER_LIFECYCLE:
        if not callable(getattr(instance, method, None)):
            raise ConfigError(f"{gatherer_name} has no {method}() method.")


def require_audits(
    audits: list[dict[str, Any]] | None,
    config_dir: str | None,
    resolver: PluginResolver,
) -> list[AuditDefn] | None:
    """Turn canonical audit records into :class:`AuditDefn` with live implementations."""
    if audits is None:
        return None

    core_list = set(get_audit_list())
    resolved: list[AuditDefn] = []
    for record in audits:
        audit_path = record.get("path")
        implementation = record.get("implementation")
        if implementation is None:
            if audit_path in core_list:
                implementation = BUILTIN_AUDITS[audit_path]
            else:
                implementation = resolver.resolve(audit_path, config_dir, "audit")
        assert_valid_audit(implementation, audit_path)
        resolved.append(
            AuditDefn(
                implementation=implementation,
                options=dict(record.get("options") or {}),
                path=audit_path,
            )
        )
    return resolved


def require_gatherers(
    passes: list[dict[str, Any]] | None,
    config_dir: str | None,
    resolver: PluginResolver,
) -> list[dict[str, Any]] | None:
    """Resolve every gatherer record in *passes* to a :class:`GathererDefn`.

    Each pass slot gets its own instance; gatherers keep state across the
    three lifecycle calls of a pass.
    """
    if passes is None:
        return None

    core_list = set(get_gatherer_list())
    resolved_passes: list[dict[str, Any]] = []
    for pass_json in passes:
        gatherers: list[GathererDefn] = []
        for record in pass_json.get("gatherers", []):
            gatherer_path = record.get("path")
            instance = record.get("instance")
            implementation = record.get("implementation")
            if instance is None:
                if implementation is None:
                    if gatherer_path in core_list:
                        implementation = BUILTIN_GATHERERS[gatherer_path]
                    else:
                        implementation = resolver.resolve(gatherer_path, config_dir, "gatherer")
                if not callable(implementation):
                    raise ConfigError(
                        f"{gatherer_path or implementation!r} gatherer implementation is not a class"
                    )
                instance = implementation()
            elif implementation is None:
                implementation = type(instance)
            assert_valid_gatherer(instance, gatherer_path)
            gatherers.append(
                GathererDefn(
                    implementation=implementation,
                    instance=instance,
                    options=dict(record.get("options") or {}),
                    path=gatherer_path,
                )
            )
        resolved_passes.append({**pass_json, "gatherers": gatherers})
    return resolved_passes
