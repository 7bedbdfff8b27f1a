from __future__ import annotations
import logging
import os

# Libraries that log every request at INFO/DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def _level_from_env(default: int) -> int:
    name = os.environ.get("LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_console_logging(level: int = logging.DEBUG) -> None:
    """
    Call once at app start. Prints detailed logs to console.

    LOG_LEVEL in the environment overrides ``level``.
    """
    level = _level_from_env(level)
    root = logging.getLogger()
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        # already configured (avoid duplicates)
        root.setLevel(level)
        return

    root.setLevel(level)
    h = logging.StreamHandler()
    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    h.setFormatter(fmt)
    root.addHandler(h)
