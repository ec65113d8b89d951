from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from auditplan import constants
from auditplan._logging import add_warning
from auditplan.models import AuditDefn, Category, ConfigError, PassDefn


def _id_list(value: Any, *, label: str) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"settings.{label} must be a list of strings")
    out: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigError(f"settings.{label}[{index}] must be a string")
        out.append(item)
    return out


def get_gatherers_needed_by_audits(audits: Iterable[AuditDefn] | None) -> set[str]:
    """Union of every artifact the given audits require."""
    if not audits:
        return set()
    required: set[str] = set()
    for audit in audits:
        required.update(audit.required_artifacts)
    return required


def filter_categories_and_audits(
    old_categories: Mapping[str, Category] | None,
    included_category_ids: list[str] | None,
    included_audit_ids: list[str] | None,
    skipped_audit_ids: list[str] | None,
    diagnostics: dict[str, Any],
) -> tuple[dict[str, Category] | None, set[str]]:
    """Narrow categories to the requested ids.

    Returns the surviving categories and the set of audit ids that should
    run: ``onlyAudits`` minus ``skipAudits``, plus every reference left in a
    surviving category.
    """
    if included_audit_ids is not None and skipped_audit_ids is not None:
        raise ConfigError("Cannot set both skipAudits and onlyAudits")

    if old_categories is None:
        return None, set()

    filter_by_category = included_category_ids is not None
    filter_by_audit = included_audit_ids is not None
    category_ids = included_category_ids or []
    audit_ids = included_audit_ids or []
    skip_audit_ids = skipped_audit_ids or []

    for category_id in category_ids:
        if category_id not in old_categories:
            add_warning(
                diagnostics, f"unrecognized category in 'onlyCategories': {category_id}"
            )

    for audit_id in dict.fromkeys([*audit_ids, *skip_audit_ids]):
        found_category = next(
            (
                category_id
                for category_id, category in old_categories.items()
                if any(ref.id == audit_id for ref in category.audit_refs)
            ),
            None,
        )
        if found_category is None:
            parent_key = "skipAudits" if audit_id in skip_audit_ids else "onlyAudits"
            add_warning(diagnostics, f"unrecognized audit in '{parent_key}': {audit_id}")
        elif audit_id in audit_ids and found_category in category_ids:
            add_warning(
                diagnostics,
                f"{audit_id} in 'onlyAudits' is already included by "
                f"{found_category} in 'onlyCategories'",
            )

    requested = set(audit_ids) - set(skip_audit_ids)
    categories: dict[str, Category] = {}
    for category_id, category in old_categories.items():
        refs = category.audit_refs
        if filter_by_category and filter_by_audit:
            if category_id not in category_ids:
                refs = tuple(ref for ref in refs if ref.id in audit_ids)
        elif filter_by_category:
            if category_id not in category_ids:
                continue
        elif filter_by_audit:
            refs = tuple(ref for ref in refs if ref.id in audit_ids)

        refs = tuple(ref for ref in refs if ref.id not in skip_audit_ids)
        if refs:
            categories[category_id] = replace(category, audit_refs=refs)
            requested.update(ref.id for ref in refs if ref.id is not None)

    return categories, requested


def generate_passes_needed_by_gatherers(
    passes: list[PassDefn] | None,
    required_gatherers: set[str],
    diagnostics: dict[str, Any],
) -> list[PassDefn] | None:
    """Drop gatherers, traces and passes no remaining audit needs.

    The default pass always survives, even empty.
    """
    if passes is None:
        return None

    audits_need_trace = constants.TRACE_ARTIFACT in required_gatherers
    filtered: list[PassDefn] = []
    for pass_defn in passes:
        gatherers = tuple(
            gatherer for gatherer in pass_defn.gatherers if gatherer.name in required_gatherers
        )
        record_trace = pass_defn.record_trace
        if record_trace and not audits_need_trace:
            pass_name = pass_defn.pass_name or "unknown pass"
            add_warning(
                diagnostics,
                f"Trace not requested by an audit, dropping trace in {pass_name}",
            )
            record_trace = False

        if (
            record_trace
            or pass_defn.pass_name == constants.DEFAULT_PASS_NAME
            or gatherers
        ):
            filtered.append(
                replace(pass_defn, gatherers=gatherers, record_trace=record_trace)
            )
    return filtered


def filter_config_if_needed(
    settings: Mapping[str, Any],
    passes: list[PassDefn] | None,
    audits: list[AuditDefn] | None,
    categories: dict[str, Category] | None,
    diagnostics: dict[str, Any],
) -> tuple[list[PassDefn] | None, list[AuditDefn] | None, dict[str, Category] | None]:
    """Apply ``onlyCategories``, ``onlyAudits`` and ``skipAudits``.

    Returns the inputs untouched when none of the three is set.
    """
    category_ids = _id_list(settings.get("onlyCategories"), label="onlyCategories")
    audit_ids = _id_list(settings.get("onlyAudits"), label="onlyAudits")
    skip_audit_ids = _id_list(settings.get("skipAudits"), label="skipAudits")

    if category_ids is None and audit_ids is None and skip_audit_ids is None:
        return passes, audits, categories

    filtered_categories, requested_audit_names = filter_categories_and_audits(
        categories, category_ids, audit_ids, skip_audit_ids, diagnostics
    )

    filtered_audits = (
        [audit for audit in audits if audit.name in requested_audit_names]
        if audits is not None
        else None
    )

    required_gatherers = get_gatherers_needed_by_audits(filtered_audits)
    filtered_passes = generate_passes_needed_by_gatherers(
        passes, required_gatherers, diagnostics
    )
    return filtered_passes, filtered_audits, filtered_categories
