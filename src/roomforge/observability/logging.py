"""Logging for RoomForge: structlog events routed through stdlib handlers.

Every module logs snake_case events with keyword context, e.g.
``log.warning("room_not_found", id="r9", operation="update_room")``. The
content store reports its diagnostics (CRUD misses, rejected updates,
observer failures) this way instead of raising.

Two sinks exist. The console always gets a rich rendering on stderr, more
detailed with each ``-v``. ``rf --log`` adds ``<project>/logs/debug.jsonl``
with one JSON object per event, at every level.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger, Processor

LOGS_DIRNAME = "logs"
EVENT_LOG_FILENAME = "debug.jsonl"

_configured = False
_event_log: logging.FileHandler | None = None


def _console_level(verbosity: int) -> int:
    if verbosity <= 0:
        return logging.WARNING
    return logging.INFO if verbosity == 1 else logging.DEBUG


def _drop_rich_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    # RichHandler prints level and time in its own columns.
    event_dict.pop("level", None)
    event_dict.pop("timestamp", None)
    event_dict.pop("logger", None)
    return event_dict


def _console_handler(verbosity: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        level=_console_level(verbosity),
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        markup=False,
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _drop_rich_fields,
                structlog.dev.ConsoleRenderer(colors=False),
            ]
        )
    )
    return handler


def _event_log_handler(project_path: Path) -> logging.FileHandler:
    logs_dir = project_path / LOGS_DIRNAME
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(logs_dir / EVENT_LOG_FILENAME, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(default=str),
            ]
        )
    )
    return handler


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    project_path: Path | None = None,
) -> None:
    """Route structlog events to the console and, optionally, the project event log.

    Args:
        verbosity: 0 shows warnings, 1 adds info, 2 or more adds debug.
        log_to_file: Also append every event to ``<project_path>/logs/debug.jsonl``.
        project_path: Project directory. Required with ``log_to_file``.

    Raises:
        ValueError: If ``log_to_file`` is set without ``project_path``.
    """
    global _configured, _event_log

    if log_to_file and project_path is None:
        raise ValueError("project_path is required when log_to_file=True")

    close_file_logging()
    handlers = [_console_handler(verbosity)]
    if log_to_file and project_path is not None:
        _event_log = _event_log_handler(project_path)
        handlers.append(_event_log)

    # Handlers filter for their sink; the root only needs to let events through.
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a bound logger, configuring console-only logging on first use."""
    if not _configured:
        configure_logging()
    logger: FilteringBoundLogger = structlog.get_logger(name)
    return logger


def close_file_logging() -> None:
    """Detach and close the project event log, if one is open."""
    global _event_log
    if _event_log is None:
        return
    logging.getLogger().removeHandler(_event_log)
    _event_log.close()
    _event_log = None
