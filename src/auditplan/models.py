from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


class AuditPlanError(RuntimeError):
    """Base error for configuration resolution failures."""


class ConfigError(AuditPlanError):
    """Raised when a configuration is invalid."""


class MergeTypeError(ConfigError, TypeError):
    """Raised when two config trees cannot be merged."""


class PluginNotFoundError(ConfigError):
    """Raised when a plugin reference cannot be resolved."""


@dataclass(frozen=True)
class GathererDefn:
    implementation: type
    instance: Any
    options: dict[str, Any] = field(default_factory=dict)
    path: str | None = None

    @property
    def name(self) -> str:
        return str(getattr(self.instance, "name", type(self.instance).__name__))

    def to_json(self) -> dict[str, Any]:
        if self.path is not None:
            return {"path": self.path, "options": dict(self.options)}
        return {"implementation": self.implementation, "options": dict(self.options)}


@dataclass(frozen=True)
class AuditDefn:
    implementation: Any
    options: dict[str, Any] = field(default_factory=dict)
    path: str | None = None

    @property
    def name(self) -> str:
        return str(self.implementation.meta["name"])

    @property
    def required_artifacts(self) -> tuple[str, ...]:
        return tuple(self.implementation.meta["required_artifacts"])

    @property
    def score_display_mode(self) -> str | None:
        return self.implementation.meta.get("score_display_mode")

    def to_json(self) -> dict[str, Any]:
        if self.path is not None:
            return {"path": self.path, "options": dict(self.options)}
        return {"implementation": self.implementation, "options": dict(self.options)}


@dataclass(frozen=True)
class PassDefn:
    pass_name: str
    gatherers: tuple[GathererDefn, ...] = ()
    record_trace: bool = False
    use_throttling: bool = False
    pause_after_load_ms: int = 0
    network_quiet_threshold_ms: int = 0
    cpu_quiet_threshold_ms: int = 0
    blocked_url_patterns: tuple[str, ...] = ()
    blank_page: str = "about:blank"
    blank_duration: int = 300

    def to_json(self) -> dict[str, Any]:
        return {
            "passName": self.pass_name,
            "recordTrace": self.record_trace,
            "useThrottling": self.use_throttling,
            "pauseAfterLoadMs": self.pause_after_load_ms,
            "networkQuietThresholdMs": self.network_quiet_threshold_ms,
            "cpuQuietThresholdMs": self.cpu_quiet_threshold_ms,
            "blockedUrlPatterns": list(self.blocked_url_patterns),
            "blankPage": self.blank_page,
            "blankDuration": self.blank_duration,
            "gatherers": [gatherer.to_json() for gatherer in self.gatherers],
        }

    @classmethod
    def from_json(
        cls, payload: Mapping[str, Any], gatherers: tuple[GathererDefn, ...]
    ) -> "PassDefn":
        pass_name = payload.get("passName")
        if not isinstance(pass_name, str) or not pass_name.strip():
            raise ConfigError(f"passName must be a non-empty string, got {pass_name!r}")
        return cls(
            pass_name=pass_name,
            gatherers=gatherers,
            record_trace=bool(payload.get("recordTrace", False)),
            use_throttling=bool(payload.get("useThrottling", False)),
            pause_after_load_ms=payload.get("pauseAfterLoadMs", 0),
            network_quiet_threshold_ms=payload.get("networkQuietThresholdMs", 0),
            cpu_quiet_threshold_ms=payload.get("cpuQuietThresholdMs", 0),
            blocked_url_patterns=tuple(payload.get("blockedUrlPatterns") or ()),
            blank_page=str(payload.get("blankPage", "about:blank")),
            blank_duration=payload.get("blankDuration", 300),
        )


@dataclass(frozen=True)
class AuditRef:
    id: str | None
    weight: float = 0
    group: str | None = None

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "weight": self.weight}
        if self.group is not None:
            out["group"] = self.group
        return out

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "AuditRef":
        if not isinstance(payload, Mapping):
            raise ConfigError(f"audit reference must be a mapping, got {payload!r}")
        weight = payload.get("weight", 0)
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ConfigError(f"audit reference {payload.get('id')} weight must be a number")
        return cls(id=payload.get("id"), weight=weight, group=payload.get("group"))


@dataclass(frozen=True)
class Category:
    title: str
    description: str = ""
    audit_refs: tuple[AuditRef, ...] = ()
    manual_description: str | None = None

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "auditRefs": [ref.to_json() for ref in self.audit_refs],
        }
        if self.manual_description is not None:
            out["manualDescription"] = self.manual_description
        return out

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Category":
        refs = payload.get("auditRefs") or []
        if not isinstance(refs, list):
            raise ConfigError("category auditRefs must be a list")
        return cls(
            title=str(payload.get("title", "")),
            description=str(payload.get("description", "")),
            audit_refs=tuple(AuditRef.from_json(ref) for ref in refs),
            manual_description=payload.get("manualDescription"),
        )


@dataclass(frozen=True)
class Group:
    title: str
    description: str = ""

    def to_json(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description}

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Group":
        return cls(
            title=str(payload.get("title", "")),
            description=str(payload.get("description", "")),
        )
