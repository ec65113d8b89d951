"""Logging for the auditplan CLI and config diagnostics.

Everything logs under the ``auditplan`` logger. Config resolution reports
non-fatal problems through :func:`add_warning`, which both records them on
the diagnostics dict returned by ``Config`` and logs them on
``auditplan.config``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

LOGGER_NAME = "auditplan"
LEVEL_ENV = "AUDITPLAN_LOG_LEVEL"
FILE_ENV = "AUDITPLAN_LOG_FILE"

_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"
_ROLE_ATTR = "_auditplan_role"

_config_log = logging.getLogger(f"{LOGGER_NAME}.config")


def add_warning(diagnostics: dict[str, Any], message: str) -> None:
    """Record a non-fatal config diagnostic and log it."""
    diagnostics.setdefault("warnings", []).append(message)
    _config_log.warning("%s", message)


def _level_from_env() -> int:
    name = os.environ.get(LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.WARNING
    # getLevelName returns "Level NAME" for names it does not know
    return level if isinstance(level, int) else logging.WARNING


def _install(logger: logging.Logger, role: str, handler: logging.Handler | None) -> None:
    for existing in list(logger.handlers):
        if getattr(existing, _ROLE_ATTR, None) == role:
            logger.removeHandler(existing)
            existing.close()
    if handler is None:
        return
    setattr(handler, _ROLE_ATTR, role)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)


def setup_logging(
    *, level: int | None = None, log_file: str | Path | None = None
) -> logging.Logger:
    """Attach the stderr handler and, optionally, a log file to ``auditplan``.

    *level* defaults to ``AUDITPLAN_LOG_LEVEL`` (WARNING when unset) and
    *log_file* to ``AUDITPLAN_LOG_FILE``. The file always receives at least
    INFO, so every CLI command leaves its ``cli_command_*`` lines there.
    Calling this again replaces the handlers it installed earlier.
    """
    stream_level = level if level is not None else _level_from_env()
    logger = logging.getLogger(LOGGER_NAME)

    stream = logging.StreamHandler()
    stream.setLevel(stream_level)
    _install(logger, "stream", stream)

    if log_file is None:
        log_file = os.environ.get(FILE_ENV, "").strip() or None

    effective_level = stream_level
    if log_file is not None:
        path = Path(log_file).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(min(stream_level, logging.INFO))
        _install(logger, "file", file_handler)
        effective_level = min(effective_level, file_handler.level)
    else:
        _install(logger, "file", None)

    logger.setLevel(effective_level)
    return logger
