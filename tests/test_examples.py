from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import yaml

from auditplan import Config
from auditplan.presets import load_config_file

EXAMPLES_ROOT = Path(__file__).resolve().parents[1] / "examples" / "common_usage"


def test_custom_audit_plugin_example_resolves() -> None:
    example_dir = EXAMPLES_ROOT / "01_custom_audit_plugin"
    config_path = example_dir / "config.yaml"
    config = Config(load_config_file(config_path), {"configPath": str(config_path)})

    audits = {audit.name: audit for audit in config.audits}
    assert audits["document-title"].options == {"min_length": 10}
    assert audits["document-title"].path == "plugins/document_title"
    assert [ref.id for ref in config.categories["seo"].audit_refs] == [
        "viewport",
        "meta-description",
        "document-title",
    ]
    assert config.passes[0].pause_after_load_ms == 1000
    assert config.warnings == ()


def test_custom_audit_plugin_example_script(tmp_path: Path) -> None:
    example_dir = EXAMPLES_ROOT / "01_custom_audit_plugin"
    out_path = tmp_path / "plan.yaml"
    result = subprocess.run(
        [
            sys.executable,
            str(example_dir / "build_plan.py"),
            "--out",
            str(out_path),
            "--only-categories",
            "seo",
        ],
        cwd=str(tmp_path),
        text=True,
        capture_output=True,
        check=False,
    )
    assert result.returncode == 0, result.stderr
    assert "wrote run plan with 3 audits" in result.stdout

    plan = yaml.safe_load(out_path.read_text(encoding="utf-8"))
    assert [audit["path"] for audit in plan["audits"]] == [
        "viewport",
        "seo/meta-description",
        "plugins/document_title",
    ]
