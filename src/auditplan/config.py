from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

from auditplan import extend, filtering, plugins, shorthand, validation
from auditplan.merge import deep_clone, deep_clone_config_json
from auditplan.models import AuditDefn, Category, ConfigError, Group, PassDefn
from auditplan.presets import DEFAULT_CONFIG_PATH, load_default_config, load_full_config

_log = logging.getLogger("auditplan.config")


def _validate_mapping(value: Any, *, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{label} must be a mapping")
    return value


def _categories_from_json(raw: Any) -> dict[str, Category] | None:
    if raw is None:
        return None
    categories = _validate_mapping(raw, label="categories")
    return {
        str(category_id): Category.from_json(
            _validate_mapping(payload, label=f"categories.{category_id}")
        )
        for category_id, payload in categories.items()
    }


def _groups_from_json(raw: Any) -> dict[str, Group] | None:
    if raw is None:
        return None
    groups = _validate_mapping(raw, label="groups")
    return {
        str(group_id): Group.from_json(_validate_mapping(payload, label=f"groups.{group_id}"))
        for group_id, payload in groups.items()
    }


class Config:
    """A fully resolved, validated run plan.

    Construction runs the whole pipeline: extends chain, settings and flags,
    pass defaults, shorthand expansion, plugin resolution, filtering and
    validation. Any fatal problem raises :class:`ConfigError` and no
    ``Config`` is produced. Non-fatal problems are collected in
    :attr:`diagnostics` (and logged).

    ``flags`` may carry ``configPath``, an absolute path to the config file
    whose directory anchors relative plugin references. Other flags that
    name a known setting override the config's settings.
    """

    def __init__(
        self,
        config_json: Mapping[str, Any] | None = None,
        flags: Mapping[str, Any] | None = None,
        *,
        plugin_resolver: plugins.PluginResolver | None = None,
    ) -> None:
        flags = dict(flags or {})
        config_path = flags.get("configPath")

        if config_json is None:
            config_json = load_default_config()
            config_path = str(DEFAULT_CONFIG_PATH)

        if config_path and not os.path.isabs(str(config_path)):
            raise ConfigError("configPath must be an absolute path.")

        config_json = deep_clone_config_json(
            _validate_mapping(config_json, label="config")
        )

        if config_json.get("extends"):
            config_json = extend.resolve_extends(
                config_json,
                default_json=load_default_config(),
                full_json=load_full_config(),
            )

        diagnostics: dict[str, Any] = {"warnings": []}
        settings = extend.init_settings(config_json.get("settings"), flags)

        passes_json = extend.augment_passes_with_defaults(config_json.get("passes"))
        passes_json = extend.adjust_default_pass_for_throttling(settings, passes_json)
        extend.check_unique_pass_names(passes_json)

        audits_json = shorthand.expand_audit_shorthand_and_merge_options(
            config_json.get("audits")
        )
        passes_json = shorthand.expand_gatherer_shorthand_and_merge_options(passes_json)

        config_dir = str(Path(str(config_path)).parent) if config_path else None
        resolver = plugin_resolver or plugins.ModulePluginResolver()

        resolved_passes = plugins.require_gatherers(passes_json, config_dir, resolver)
        audits = plugins.require_audits(audits_json, config_dir, resolver)
        passes = (
            [
                PassDefn.from_json(pass_json, tuple(pass_json["gatherers"]))
                for pass_json in resolved_passes
            ]
            if resolved_passes is not None
            else None
        )
        categories = _categories_from_json(config_json.get("categories"))
        groups = _groups_from_json(config_json.get("groups"))

        passes, audits, categories = filtering.filter_config_if_needed(
            settings, passes, audits, categories, diagnostics
        )

        validation.validate_passes(passes, audits, diagnostics)
        validation.validate_categories(categories, audits, groups)

        self._config_dir = config_dir
        self._settings = settings
        self._passes = tuple(passes) if passes is not None else None
        self._audits = tuple(audits) if audits is not None else None
        self._categories = categories
        self._groups = groups
        self._diagnostics = diagnostics
        _log.debug(
            "config_resolved passes=%s audits=%s categories=%s warnings=%s",
            len(self._passes or ()),
            len(self._audits or ()),
            len(self._categories or {}),
            len(diagnostics["warnings"]),
        )

    @staticmethod
    def get_categories(config_json: Mapping[str, Any]) -> list[dict[str, str]]:
        categories = config_json.get("categories")
        if not categories:
            return []
        return [
            {"id": category_id, "title": category.get("title")}
            for category_id, category in categories.items()
        ]

    @staticmethod
    def get_gatherers_needed_by_audits(audits: Any) -> set[str]:
        return filtering.get_gatherers_needed_by_audits(audits)

    @property
    def config_dir(self) -> str | None:
        return self._config_dir

    @property
    def settings(self) -> dict[str, Any]:
        return deep_clone(self._settings)

    @property
    def passes(self) -> tuple[PassDefn, ...] | None:
        return self._passes

    @property
    def audits(self) -> tuple[AuditDefn, ...] | None:
        return self._audits

    @property
    def categories(self) -> dict[str, Category] | None:
        return dict(self._categories) if self._categories is not None else None

    @property
    def groups(self) -> dict[str, Group] | None:
        return dict(self._groups) if self._groups is not None else None

    @property
    def diagnostics(self) -> dict[str, Any]:
        return {"warnings": list(self._diagnostics["warnings"])}

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._diagnostics["warnings"])

    def to_json(self) -> dict[str, Any]:
        """Return the equivalent config tree.

        Feeding the result back into :class:`Config` rebuilds the same
        passes, audits and categories.
        """
        out: dict[str, Any] = {"settings": deep_clone(self._settings)}
        if self._passes is not None:
            out["passes"] = [pass_defn.to_json() for pass_defn in self._passes]
        if self._audits is not None:
            out["audits"] = [audit.to_json() for audit in self._audits]
        if self._categories is not None:
            out["categories"] = {
                category_id: category.to_json()
                for category_id, category in self._categories.items()
            }
        if self._groups is not None:
            out["groups"] = {
                group_id: group.to_json() for group_id, group in self._groups.items()
            }
        return out
