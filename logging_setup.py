from __future__ import annotations

import logging
import sys

_NOISY_LOGGERS = ("uvicorn.access", "pymongo", "urllib3", "httpx", "passlib")


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure root logging with a single stderr handler.

    Call this ONCE, very early (before first logger.info). Chatty third-party
    loggers are held at WARNING so request traces stay readable.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
