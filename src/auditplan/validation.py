from __future__ import annotations

from typing import Any, Mapping

from auditplan._logging import add_warning
from auditplan.audits.audit import Audit
from auditplan.filtering import get_gatherers_needed_by_audits
from auditplan.models import AuditDefn, Category, ConfigError, Group, PassDefn

_MANUAL = Audit.SCORING_MODES["MANUAL"]


def validate_passes(
    passes: list[PassDefn] | None,
    audits: list[AuditDefn] | None,
    diagnostics: dict[str, Any],
) -> None:
    if passes is None:
        return

    required_gatherers = get_gatherers_needed_by_audits(audits)
    for pass_defn in passes:
        for gatherer in pass_defn.gatherers:
            if gatherer.name not in required_gatherers:
                add_warning(
                    diagnostics,
                    f"{gatherer.name} gatherer requested, however no audit requires it.",
                )

    used_names: set[str] = set()
    for pass_defn in passes:
        if pass_defn.pass_name in used_names:
            raise ConfigError(
                f"Passes must have unique names (repeated passName: {pass_defn.pass_name})."
            )
        used_names.add(pass_defn.pass_name)


def validate_categories(
    categories: Mapping[str, Category] | None,
    audits: list[AuditDefn] | None,
    groups: Mapping[str, Group] | None,
) -> None:
    if categories is None:
        return

    audits_by_name = {audit.name: audit for audit in audits or []}
    for category_id, category in categories.items():
        for index, audit_ref in enumerate(category.audit_refs):
            if not audit_ref.id:
                raise ConfigError(f"missing an audit id at {category_id}[{index}]")

            audit = audits_by_name.get(audit_ref.id)
            if audit is None:
                raise ConfigError(
                    f"could not find {audit_ref.id} audit for category {category_id}"
                )

            is_manual = audit.score_display_mode == _MANUAL
            if category_id == "accessibility" and not audit_ref.group and not is_manual:
                raise ConfigError(
                    f"{audit_ref.id} accessibility audit does not have a group"
                )

            if audit_ref.weight > 0 and is_manual:
                raise ConfigError(f"{audit_ref.id} is manual but has a positive weight")

            if audit_ref.group and (not groups or audit_ref.group not in groups):
                raise ConfigError(
                    f"{audit_ref.id} references unknown group {audit_ref.group}"
                )
