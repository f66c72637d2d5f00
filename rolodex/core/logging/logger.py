"""Logging setup for rolodex.

Every logger lives under the ``rolodex`` hierarchy. It writes everything to a rotating file below the configured log
directory and prints errors to the console. With ``ROLODEX_LOGGER__USE_STRUCTLOG=true`` loggers are structlog
loggers that render each record as JSON.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

from rolodex.core.config import CoreSettings
from rolodex.core.utils import ifnone

ROOT_LOGGER_NAME = "rolodex"
LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(name)s: %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def default_formatter(fmt: Optional[str] = None) -> logging.Formatter:
    return logging.Formatter(fmt or LOG_FORMAT)


def _log_file_path(name: str, log_dir: Optional[Path], settings: CoreSettings, use_structlog: bool) -> Path:
    if log_dir is None:
        dirs = settings.ROLODEX_DIR_PATHS
        log_dir = dirs.STRUCT_LOGGER_DIR if use_structlog else dirs.LOGGER_DIR
    if name == ROOT_LOGGER_NAME:
        return Path(log_dir) / f"{name}.log"
    return Path(log_dir) / "modules" / f"{name}.log"


def _configure_structlog(json_output: bool):
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    *,
    log_dir: Optional[Path] = None,
    logger_level: int = logging.DEBUG,
    stream_level: int = logging.ERROR,
    add_stream_handler: bool = True,
    file_level: int = logging.DEBUG,
    file_mode: str = "a",
    add_file_handler: bool = True,
    propagate: bool = False,
    max_bytes: int = MAX_LOG_BYTES,
    backup_count: int = LOG_BACKUPS,
    use_structlog: Optional[bool] = None,
    structlog_json: bool = True,
    structlog_bind: Optional[Mapping[str, Any]] = None,
) -> logging.Logger | structlog.stdlib.BoundLogger:
    """(Re)configure the logger called ``name``, replacing any handlers it already had.

    The file handler writes to ``<log_dir>/rolodex.log`` for the root logger and to ``<log_dir>/modules/<name>.log``
    for every other logger. ``log_dir`` defaults to ``ROLODEX_DIR_PATHS.LOGGER_DIR``, or to ``STRUCT_LOGGER_DIR``
    when structlog is on.

    Args:
        name: Logger name.
        log_dir: Directory for the log file.
        logger_level: Level of the logger itself.
        stream_level: Level of the console handler.
        add_stream_handler: Whether to print to the console.
        file_level: Level of the file handler.
        file_mode: Mode the log file is opened with.
        add_file_handler: Whether to write a log file. No directory is created without one.
        propagate: Whether records also go to ancestor loggers.
        max_bytes: Size at which the log file rotates.
        backup_count: Number of rotated files kept.
        use_structlog: Return a structlog BoundLogger. Defaults to ``ROLODEX_LOGGER.USE_STRUCTLOG``.
        structlog_json: Render structlog records as JSON rather than for the console.
        structlog_bind: Fields bound to every structlog record.
    """
    settings = CoreSettings()
    use_structlog = ifnone(use_structlog, settings.ROLODEX_LOGGER.USE_STRUCTLOG)

    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(logger_level)
    logger.propagate = propagate

    handlers: list[logging.Handler] = []
    if add_stream_handler:
        console = logging.StreamHandler()
        console.setLevel(stream_level)
        handlers.append(console)
    if add_file_handler:
        path = _log_file_path(name, log_dir, settings, use_structlog)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(path, mode=file_mode, maxBytes=max_bytes, backupCount=backup_count)
        rotating.setLevel(file_level)
        handlers.append(rotating)

    # structlog renders the whole record itself, so handlers only print the message
    formatter = logging.Formatter("%(message)s") if use_structlog else default_formatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if not use_structlog:
        return logger

    _configure_structlog(structlog_json)
    bound = structlog.get_logger(name)
    return bound.bind(**structlog_bind) if structlog_bind else bound


def get_logger(name: Optional[str] = ROOT_LOGGER_NAME, **kwargs) -> logging.Logger | structlog.stdlib.BoundLogger:
    """Configure and return a logger under the ``rolodex`` hierarchy.

    ``get_logger("people.repository")`` configures ``rolodex.people.repository``. Loggers propagate by default, and
    ancestors that already own handlers are reconfigured without a console handler so each error is printed once.
    Keyword arguments are passed to :func:`setup_logger`.
    """
    name = name or ROOT_LOGGER_NAME
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    kwargs.setdefault("propagate", True)

    if kwargs["propagate"]:
        parts = name.split(".")
        for depth in range(1, len(parts)):
            ancestor = ".".join(parts[:depth])
            if logging.getLogger(ancestor).handlers:
                setup_logger(ancestor, **{**kwargs, "add_stream_handler": False})
    return setup_logger(name, **kwargs)
