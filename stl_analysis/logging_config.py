"""
Logging for the stl_analysis package.

Library modules only call `logging.getLogger(__name__)`. The application
(the command line, or a host program) installs handlers once with
`setup_logging`, which attaches them to the `stl_analysis` logger:

- a console handler on stderr with `ConsoleFormatter`
- optionally a JSON-lines file with `JSONFormatter`

Both formatters print the worker thread of each record, since mesh builds,
areas, volumes and body counts run on a thread pool, and both render
anything passed through `extra=` (numpy scalars and arrays included).

Usage:
    from stl_analysis.logging_config import setup_logging, log_timing

    setup_logging(level=logging.DEBUG, json_file="analysis.log.json")
    with log_timing(logger, "build mesh", triangles=len(soup)) as info:
        mesh = build_indexed_mesh(soup)
        info["vertices"] = mesh.n_vertices
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

import numpy as np

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "stl_analysis"

# Attributes every LogRecord carries; anything else came in through `extra=`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to a record through `extra=`, in insertion order."""
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}


def _plain(value: Any) -> Any:
    """numpy values to their Python equivalents; everything else unchanged."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return value


def _short_name(name: str) -> str:
    prefix = PACKAGE_LOGGER + "."
    return name[len(prefix):] if name.startswith(prefix) else name


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: time, level, logger, thread, message, then every extra field.
    Warnings and errors also carry a `source` of "file:line"; records with
    exception info carry the formatted `traceback`.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["source"] = f"{record.filename}:{record.lineno}"
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in record_extras(record).items():
                entry[key] = _plain(value)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line console output.

    Format: HH:MM:SS LEVEL    [thread] logger: message  key=value key=value

    The `stl_analysis.` prefix is dropped from logger names. Floats are
    shown with four significant digits and long sequences by their length.
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[2m',
        logging.INFO: '\033[34m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[1;31m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    @staticmethod
    def format_value(value: Any) -> str:
        value = _plain(value)
        if isinstance(value, float):
            return f"{value:.4g}"
        if isinstance(value, (list, tuple)) and len(value) > 3:
            return f"<{len(value)} items>"
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if color:
            level = color + level + self.RESET

        line = (f"{stamp} {level} [{record.threadName}] "
                f"{_short_name(record.name)}: {record.getMessage()}")

        if self.show_extra:
            pairs = " ".join(
                f"{key}={self.format_value(value)}"
                for key, value in record_extras(record).items()
            )
            if pairs:
                line += "  " + pairs

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _attach(logger: logging.Logger, handler: logging.Handler,
            formatter: logging.Formatter, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(
    level: int = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """Install handlers on the `stl_analysis` logger.

    Handlers from an earlier call are closed and replaced. The package
    logger stops propagating to the root logger.

    Args:
        level: Minimum level for the logger and its handlers
        json_file: Also write JSON lines to this file
        console: Write to stderr
        use_colors: ANSI colors on the console

    Returns:
        The package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)
        old.close()

    if console:
        _attach(package_logger, logging.StreamHandler(sys.stderr),
                ConsoleFormatter(use_colors=use_colors), level)
    if json_file:
        _attach(package_logger, logging.FileHandler(Path(json_file), encoding='utf-8'),
                JSONFormatter(), level)

    package_logger.propagate = False
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Module logger, e.g. `get_logger(__name__)`."""
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **fields: Any
) -> Iterator[Dict[str, Any]]:
    """Time a block and log its start and its outcome.

    Records "<operation> started" and "<operation> finished in N.NNNs" at
    `level`, or "<operation> failed after N.NNNs: <error>" at ERROR, in
    which case the exception propagates. `fields` go on every record;
    entries added to the yielded dict go on the final one.
    """
    results: Dict[str, Any] = {}
    logger.log(level, "%s started", operation,
               extra={"operation": operation, **fields})
    started = time.perf_counter()

    try:
        yield results
    except Exception as exc:
        elapsed = time.perf_counter() - started
        logger.error("%s failed after %.3fs: %s", operation, elapsed, exc,
                     extra={"operation": operation, "elapsed": elapsed,
                            "error": repr(exc), **fields})
        raise

    elapsed = time.perf_counter() - started
    logger.log(level, "%s finished in %.3fs", operation, elapsed,
               extra={"operation": operation, "elapsed": elapsed, **fields, **results})


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator form of `log_timing`.

    Uses the decorated function's module logger and name unless given.
    """
    def decorator(func: F) -> F:
        target = logger or logging.getLogger(func.__module__)
        name = operation or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with log_timing(target, name, level):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]
    return decorator
