"""
Logging setup for the ``tunesmith`` logger tree.

Console records get an emoji level marker; everything at DEBUG and above also
lands in ``tunesmith.log`` under ``$TUNESMITH_LOG_DIR`` (default
``~/.cache/tunesmith/logs``). Failures that reach a user surface are appended
to the same file with their traceback via :func:`log_exception`.
"""

from __future__ import annotations

import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path

LOG_DIR_ENV = "TUNESMITH_LOG_DIR"
DEBUG_ENV = "TUNESMITH_DEBUG"
LOG_FILENAME = "tunesmith.log"
ROOT_LOGGER = "tunesmith"

_LOGGER = logging.getLogger("tunesmith.logging")
# Marks handlers installed here so a forced reconfigure replaces only those.
_OWNED_ATTR = "_tunesmith_owned"


class EmojiLevelFormatter(logging.Formatter):
    """Exposes ``%(level_prefix)s``: an emoji for the record's level."""

    PREFIXES = {
        logging.DEBUG: "🐛",
        logging.INFO: "ℹ️",
        logging.WARNING: "⚠️",
        logging.ERROR: "❌",
        logging.CRITICAL: "💥",
    }

    def format(self, record: logging.LogRecord) -> str:
        record.level_prefix = self.PREFIXES.get(record.levelno, "")
        return super().format(record)


def debug_enabled() -> bool:
    return bool(os.environ.get(DEBUG_ENV))


def get_log_dir() -> Path:
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "tunesmith" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / LOG_FILENAME


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_ATTR, True)
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.__stderr__)
    handler.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    handler.setFormatter(EmojiLevelFormatter("%(level_prefix)s %(name)s: %(message)s"))
    return _owned(handler)


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8", delay=True)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    return _owned(handler)


def configure_logging(*, force: bool = False) -> None:
    """
    Install the console and file handlers on the ``tunesmith`` logger.

    Runs once per process unless ``force`` is set, in which case previously
    installed handlers are closed and rebuilt (picking up a changed
    ``TUNESMITH_LOG_DIR`` or ``TUNESMITH_DEBUG``). The console handler is
    skipped when the root logger already has handlers, so an embedding
    application keeps control of its own console output.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    owned = [h for h in logger.handlers if getattr(h, _OWNED_ATTR, False)]
    if owned and not force:
        return
    for handler in owned:
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG)
    if force or not logging.getLogger().handlers:
        logger.addHandler(_console_handler())
    try:
        logger.addHandler(_file_handler(get_log_path()))
    except OSError as exc:
        _LOGGER.warning("File logging disabled: %s", exc, exc_info=True)
    logger.propagate = True


def log_exception(context: str, exc: BaseException) -> Path | None:
    """Append ``exc`` and its traceback to the log file; returns the path written, if any."""
    path = get_log_path()
    stamp = datetime.now().isoformat(timespec="seconds")
    report = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{stamp}] {context} failed: {type(exc).__name__}: {exc}\n{report}\n")
    except OSError as write_exc:
        _LOGGER.warning("Could not write %s: %s", path, write_exc, exc_info=True)
        return None
    return path
