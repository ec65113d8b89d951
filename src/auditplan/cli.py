from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
import yaml

from auditplan import constants
from auditplan._logging import setup_logging
from auditplan.config import Config
from auditplan.models import ConfigError
from auditplan.presets import load_config_file

_cli_log = logging.getLogger("auditplan.cli")


def _console() -> Console:
    return Console(highlight=False)


def _parse_id_args(raw_items: list[str] | None) -> list[str] | None:
    if raw_items is None:
        return None
    out: list[str] = []
    for raw in raw_items:
        for token in raw.split(","):
            token = token.strip()
            if token and token not in out:
                out.append(token)
    return out


def _flags_from_args(args: argparse.Namespace) -> dict[str, Any]:
    flags: dict[str, Any] = {}
    if args.config:
        flags["configPath"] = str(Path(args.config).expanduser().resolve())
    only_categories = _parse_id_args(args.only_categories)
    if only_categories is not None:
        flags["onlyCategories"] = only_categories
    only_audits = _parse_id_args(args.only_audits)
    if only_audits is not None:
        flags["onlyAudits"] = only_audits
    skip_audits = _parse_id_args(args.skip_audits)
    if skip_audits is not None:
        flags["skipAudits"] = skip_audits
    if args.throttling_method:
        flags["throttlingMethod"] = args.throttling_method
    return flags


def _load_config(args: argparse.Namespace) -> Config:
    flags = _flags_from_args(args)
    config_json = load_config_file(flags["configPath"]) if args.config else None
    return Config(config_json, flags)


def _plugin_label(value: Any) -> str:
    if isinstance(value, type):
        return f"{value.__module__}.{value.__qualname__}"
    return repr(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return _plugin_label(value)


def _resolved_payload(config: Config, *, show_diagnostics: bool) -> dict[str, Any]:
    payload = _jsonable(config.to_json())
    if show_diagnostics:
        payload = {"config": payload, "diagnostics": config.diagnostics}
    return payload


def _render_summary_table(config: Config) -> None:
    console = _console()
    table = Table(title="Resolved Config", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Valid", "true")
    table.add_row("Config Dir", str(config.config_dir or "-"))
    table.add_row("Throttling", str(config.settings.get("throttlingMethod")))
    table.add_row("Passes", str(len(config.passes or ())))
    table.add_row("Audits", str(len(config.audits or ())))
    table.add_row("Categories", ", ".join(config.categories or {}) or "-")
    table.add_row("Warnings", str(len(config.warnings)))
    console.print(table)

    passes = Table(title="Passes")
    passes.add_column("Pass", style="bold")
    passes.add_column("Trace")
    passes.add_column("Throttled")
    passes.add_column("Gatherers")
    for pass_defn in config.passes or ():
        passes.add_row(
            pass_defn.pass_name,
            "yes" if pass_defn.record_trace else "no",
            "yes" if pass_defn.use_throttling else "no",
            ", ".join(gatherer.name for gatherer in pass_defn.gatherers) or "-",
        )
    console.print(passes)

    for warning in config.warnings:
        console.print(f"[yellow]warning[/yellow] {warning}")


def _cmd_resolve(args: argparse.Namespace) -> int:
    config = _load_config(args)
    payload = _resolved_payload(config, show_diagnostics=args.show_diagnostics)
    if args.format == "json":
        text = json.dumps(payload, indent=2, sort_keys=True) + "\n"
    else:
        text = yaml.safe_dump(payload, sort_keys=False)

    if args.out:
        output_path = Path(args.out).expanduser().resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        print(json.dumps({"output_path": str(output_path)}, indent=2, sort_keys=True))
    else:
        print(text, end="")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if args.format == "json":
        payload = {
            "valid": True,
            "num_passes": len(config.passes or ()),
            "num_audits": len(config.audits or ()),
            "categories": sorted(config.categories or {}),
            "warnings": list(config.warnings),
        }
        print(json.dumps(payload, indent=2, sort_keys=True))
        return 0
    _render_summary_table(config)
    return 0


def _cmd_list_categories(args: argparse.Namespace) -> int:
    config_json = load_config_file(args.config) if args.config else Config().to_json()
    categories = Config.get_categories(config_json)
    if args.format == "json":
        print(json.dumps(categories, indent=2, sort_keys=True))
        return 0
    console = _console()
    table = Table(title="Categories")
    table.add_column("ID", style="bold cyan")
    table.add_column("Title")
    for category in categories:
        table.add_row(category["id"], str(category["title"]))
    console.print(table)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auditplan", description="Resolve and validate audit run-plan configs"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _add_config_args(target: argparse.ArgumentParser) -> None:
        target.add_argument(
            "--config",
            default=None,
            help="Config YAML/JSON path (default: built-in default config)",
        )
        target.add_argument(
            "--only-categories",
            action="append",
            default=None,
            help="Restrict to these category ids (comma-separated, repeatable)",
        )
        audit_group = target.add_mutually_exclusive_group()
        audit_group.add_argument(
            "--only-audits",
            action="append",
            default=None,
            help="Restrict to these audit ids (comma-separated, repeatable)",
        )
        audit_group.add_argument(
            "--skip-audits",
            action="append",
            default=None,
            help="Drop these audit ids (comma-separated, repeatable)",
        )
        target.add_argument(
            "--throttling-method",
            choices=list(constants.THROTTLING_METHODS),
            default=None,
        )

    resolve = sub.add_parser("resolve", help="Print the fully resolved config")
    _add_config_args(resolve)
    resolve.add_argument("--format", choices=["yaml", "json"], default="yaml")
    resolve.add_argument(
        "--show-diagnostics",
        action="store_true",
        help="Include non-fatal diagnostics in output",
    )
    resolve.add_argument(
        "--out",
        default=None,
        help="Optional file path for rendered output (prints to stdout when omitted)",
    )
    resolve.set_defaults(handler=_cmd_resolve)

    validate = sub.add_parser("validate", help="Validate a config and summarize it")
    _add_config_args(validate)
    validate.add_argument("--format", choices=["json", "table"], default="table")
    validate.set_defaults(handler=_cmd_validate)

    list_categories = sub.add_parser(
        "list-categories", help="List category ids and titles declared by a config"
    )
    list_categories.add_argument("--config", default=None, help="Config YAML/JSON path")
    list_categories.add_argument("--format", choices=["json", "table"], default="table")
    list_categories.set_defaults(handler=_cmd_list_categories)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    setup_logging()
    parser = _build_parser()
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    args = parser.parse_args(raw_argv)
    command = str(getattr(args, "command", "unknown"))
    started = time.perf_counter()
    _cli_log.info("cli_command_start command=%s argv=%s", command, " ".join(raw_argv))

    exit_code = 1
    try:
        exit_code = int(args.handler(args))
    except ConfigError as exc:
        _cli_log.error("cli_command_error command=%s kind=config error=%s", command, exc)
        print(f"[config error] {exc}", file=sys.stderr)
        exit_code = 2
    except KeyboardInterrupt:
        _cli_log.error("cli_command_error command=%s kind=interrupted", command)
        print("\n[interrupted]", file=sys.stderr)
        exit_code = 130
    except (OSError, ImportError) as exc:
        _cli_log.error(
            "cli_command_error command=%s kind=%s error=%s",
            command,
            type(exc).__name__,
            exc,
        )
        print(f"[error] {type(exc).__name__}: {exc}", file=sys.stderr)
        exit_code = 1
    finally:
        _cli_log.info(
            "cli_command_end command=%s exit_code=%s duration_sec=%.3f",
            command,
            exit_code,
            time.perf_counter() - started,
        )

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
