from __future__ import annotations

import logging
import sys
from typing import Union

_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "multipart")


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).strip().upper(), logging.INFO)


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure root logging with a single stderr handler.

    Stdout stays reserved for the console menu. Call once, early, from an
    entry point; repeated calls replace the previous handler.
    """
    resolved = _resolve_level(level)

    root = logging.getLogger()
    root.setLevel(resolved)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    logging.captureWarnings(True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
