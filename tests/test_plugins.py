from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from auditplan.audits.audit import Audit
from auditplan.audits.builtins import BUILTIN_AUDITS, Viewport
from auditplan.cli import main
from auditplan.config import Config
from auditplan.gather.builtins import BUILTIN_GATHERERS, Manifest
from auditplan.gather.gatherer import Gatherer
from auditplan.models import ConfigError, PluginNotFoundError
from auditplan.plugins import (
    ModulePluginResolver,
    assert_valid_audit,
    assert_valid_gatherer,
    get_audit_list,
    get_gatherer_list,
    require_audits,
    require_gatherers,
)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content.strip() + "\n", encoding="utf-8")


class _RecordingResolver:
    def __init__(self, table: dict[str, Any] | None = None) -> None:
        self.table = dict(table or {})
        self.calls: list[tuple[str, str | None, str]] = []

    def resolve(self, reference: str, base_dir: str | None, kind: str) -> Any:
        self.calls.append((reference, base_dir, kind))
        if reference not in self.table:
            raise PluginNotFoundError(f"Unable to locate {kind}: {reference}")
        return self.table[reference]


class CustomAudit(Audit):
    meta = {
        "name": "custom-audit",
        "description": "Custom audit passes",
        "failure_description": "Custom audit fails",
        "required_artifacts": ["CustomGatherer"],
        "score_display_mode": "binary",
    }

    @classmethod
    def audit(cls, artifacts, context):
        return cls.binary_result(True)


class CustomGatherer(Gatherer):
    pass


def test_builtin_registry_lists_known_names() -> None:
    assert get_audit_list() == sorted(BUILTIN_AUDITS)
    assert get_gatherer_list() == sorted(BUILTIN_GATHERERS)
    assert "viewport" in get_audit_list()
    assert "viewport-dimensions" in get_gatherer_list()


def test_builtin_audits_skip_the_external_resolver() -> None:
    resolver = _RecordingResolver()
    audits = require_audits([{"path": "viewport", "options": {"a": 1}}], None, resolver)
    assert audits[0].implementation is Viewport
    assert audits[0].options == {"a": 1}
    assert audits[0].path == "viewport"
    assert resolver.calls == []


def test_unknown_audits_are_delegated_to_the_resolver() -> None:
    resolver = _RecordingResolver({"plugins/custom-audit": CustomAudit})
    audits = require_audits(
        [{"path": "plugins/custom-audit", "options": {}}], "/configs", resolver
    )
    assert audits[0].implementation is CustomAudit
    assert resolver.calls == [("plugins/custom-audit", "/configs", "audit")]


def test_unresolvable_reference_fails_construction() -> None:
    resolver = _RecordingResolver()
    with pytest.raises(PluginNotFoundError, match="Unable to locate gatherer: nope"):
        Config(
            {"passes": [{"passName": "defaultPass", "gatherers": ["nope"]}]},
            plugin_resolver=resolver,
        )
    assert resolver.calls == [("nope", None, "gatherer")]


def test_gatherers_get_one_instance_per_pass_slot() -> None:
    resolver = _RecordingResolver({"custom": CustomGatherer})
    passes = require_gatherers(
        [
            {"passName": "a", "gatherers": [{"path": "manifest", "options": {}}, {"path": "custom", "options": {}}]},
            {"passName": "b", "gatherers": [{"path": "manifest", "options": {}}]},
        ],
        None,
        resolver,
    )
    first = passes[0]["gatherers"][0]
    second = passes[1]["gatherers"][0]
    assert first.implementation is Manifest
    assert isinstance(first.instance, Manifest)
    assert first.instance is not second.instance
    assert isinstance(passes[0]["gatherers"][1].instance, CustomGatherer)
    assert resolver.calls == [("custom", None, "gatherer")]


def test_supplied_gatherer_instance_is_kept() -> None:
    instance = Manifest()
    passes = require_gatherers(
        [{"passName": "a", "gatherers": [{"instance": instance, "options": {}}]}],
        None,
        _RecordingResolver(),
    )
    gatherer = passes[0]["gatherers"][0]
    assert gatherer.instance is instance
    assert gatherer.implementation is Manifest
    assert gatherer.name == "Manifest"


def test_module_resolver_loads_file_relative_to_config_dir(tmp_path: Path) -> None:
    _write(
        tmp_path / "plugins" / "title_audit.py",
        """
from auditplan.audits.audit import Audit


class DocumentTitle(Audit):
    meta = {
        "name": "document-title",
        "description": "Document has a title element",
        "failure_description": "Document does not have a title element",
        "required_artifacts": ["Manifest"],
        "score_display_mode": "binary",
    }

    @classmethod
    def audit(cls, artifacts, context):
        return {"score": 1}
""",
    )
    config = Config(
        {
            "passes": [{"passName": "defaultPass", "gatherers": ["manifest"]}],
            "audits": ["plugins/title_audit"],
            "categories": {
                "seo": {
                    "title": "SEO",
                    "auditRefs": [{"id": "document-title", "weight": 1}],
                }
            },
        },
        {"configPath": str(tmp_path / "config.yaml")},
    )
    assert config.config_dir == str(tmp_path)
    assert [audit.name for audit in config.audits] == ["document-title"]
    assert config.audits[0].implementation.__name__ == "DocumentTitle"
    assert config.warnings == ()


def test_module_resolver_accepts_module_attr_references() -> None:
    resolver = ModulePluginResolver()
    assert resolver.resolve("auditplan.audits.builtins:Viewport", None, "audit") is Viewport
    with pytest.raises(PluginNotFoundError, match="has no attribute 'Missing'"):
        resolver.resolve("auditplan.audits.builtins:Missing", None, "audit")


def test_module_resolver_requires_a_single_candidate() -> None:
    with pytest.raises(PluginNotFoundError, match="exactly one Audit subclass"):
        ModulePluginResolver().resolve("auditplan.audits.builtins", None, "audit")


def test_module_resolver_reports_missing_plugins(tmp_path: Path) -> None:
    with pytest.raises(PluginNotFoundError, match="Unable to locate audit: no-such-plugin"):
        ModulePluginResolver(search_cwd=False).resolve("no-such-plugin", str(tmp_path), "audit")


class _NoAuditMethod(Audit):
    meta = dict(CustomAudit.meta)


class _NoFailureDescription(CustomAudit):
    meta = {key: value for key, value in CustomAudit.meta.items() if key != "failure_description"}


class _ManualWithoutFailureDescription(CustomAudit):
    meta = {**_NoFailureDescription.meta, "score_display_mode": "manual"}


class _NoDescription(CustomAudit):
    meta = {key: value for key, value in CustomAudit.meta.items() if key != "description"}


class _ArtifactsNotAList(CustomAudit):
    meta = {**CustomAudit.meta, "required_artifacts": "CustomGatherer"}


class _NameNotAString(CustomAudit):
    meta = {**CustomAudit.meta, "name": 7}


@pytest.mark.parametrize(
    ("implementation", "message"),
    [
        (_NoAuditMethod, "has no audit\\(\\) method"),
        (_NoFailureDescription, "has no failure_description and should"),
        (_NoDescription, "has no meta.description property"),
        (_ArtifactsNotAList, "has no meta.required_artifacts property"),
        (_NameNotAString, "has no meta.name property"),
    ],
)
def test_audit_contract_violations_are_fatal(implementation: type, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        assert_valid_audit(implementation)


def test_audit_contract_accepts_valid_audits() -> None:
    assert_valid_audit(CustomAudit)
    assert_valid_audit(_ManualWithoutFailureDescription)
    for implementation in BUILTIN_AUDITS.values():
        assert_valid_audit(implementation)


def test_audit_contract_error_uses_the_reference_path() -> None:
    with pytest.raises(ConfigError, match="plugins/broken has no audit"):
        require_audits(
            [{"path": "plugins/broken", "options": {}}],
            None,
            _RecordingResolver({"plugins/broken": _NoAuditMethod}),
        )


class _HalfGatherer:
    def before_pass(self, pass_context):
        return None

    def during_pass(self, pass_context):
        return None


def test_gatherer_contract_requires_lifecycle_methods() -> None:
    with pytest.raises(ConfigError, match="has no after_pass\\(\\) method"):
        assert_valid_gatherer(_HalfGatherer())
    with pytest.raises(ConfigError, match="_HalfGatherer has no after_pass"):
        Config({"passes": [{"passName": "defaultPass", "gatherers": [_HalfGatherer()]}]})
    assert_valid_gatherer(Manifest())


@pytest.mark.parametrize(
    ("source", "detail"),
    [
        ("raise_here = undefined_name\n", "undefined_name"),
        ("class Broken(:\n    pass\n", "broken_audit.py"),
    ],
)
def test_plugin_file_that_fails_to_import_is_a_config_error(
    tmp_path: Path, source: str, detail: str
) -> None:
    plugin_path = tmp_path / "plugins" / "broken_audit.py"
    plugin_path.parent.mkdir(parents=True)
    plugin_path.write_text(source, encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed loading audit plugin") as exc_info:
        Config(
            {"audits": ["plugins/broken_audit"]},
            {"configPath": str(tmp_path / "config.yaml")},
        )
    assert not isinstance(exc_info.value, PluginNotFoundError)
    assert detail in str(exc_info.value)
    assert exc_info.value.__cause__ is not None


def test_cli_reports_broken_plugin_as_config_error(tmp_path: Path, capsys) -> None:
    _write(tmp_path / "plugins" / "broken_audit.py", "raise RuntimeError('boom at import')")
    _write(tmp_path / "config.yaml", "audits:\n  - plugins/broken_audit")

    assert main(["validate", "--config", str(tmp_path / "config.yaml")]) == 2
    err = capsys.readouterr().err
    assert "[config error] Failed loading audit plugin" in err
    assert "boom at import" in err
