# core/logging.py
from __future__ import annotations
import logging
import os
from typing import Optional

ROOT_LOGGER = "supportchat"
_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach one stream handler to the `supportchat` logger tree (idempotent)."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(_FMT))
        root.addHandler(h)
        root.propagate = False
        # SDK request lines would log every provider call at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
