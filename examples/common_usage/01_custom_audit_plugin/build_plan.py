#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

import yaml

from auditplan import Config
from auditplan.presets import load_config_file

HERE = Path(__file__).resolve().parent


def build_plan(only_categories: list[str] | None) -> Config:
    config_path = HERE / "config.yaml"
    flags = {"configPath": str(config_path)}
    if only_categories:
        flags["onlyCategories"] = only_categories
    return Config(load_config_file(config_path), flags)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve the custom audit plugin example into a run plan"
    )
    parser.add_argument("--out", default="plan.yaml", help="Output YAML path")
    parser.add_argument(
        "--only-categories",
        nargs="*",
        default=None,
        help="Category ids to keep (default: all)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    out_path = Path(args.out).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)

    config = build_plan(args.only_categories)
    payload = config.to_json()
    out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")

    print(f"wrote run plan with {len(config.audits or ())} audits to {out_path}")
    for warning in config.warnings:
        print(f"warning: {warning}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
