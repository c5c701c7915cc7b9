from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from rich.logging import RichHandler


def setup_logging(cfg_raw: dict[str, Any]) -> logging.Logger:
    """Attach console (rich) and optional file handlers to the package logger.

    Only entry points call this; library modules just use ``logging.getLogger(__name__)``.
    """

    log_cfg = cfg_raw.get("logging", {}) or {}
    level = _level_from_string(str(log_cfg.get("level", "INFO")))

    logger = logging.getLogger("workline_search")
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False

    if bool(log_cfg.get("console", True)):
        console_handler = RichHandler(rich_tracebacks=True, show_time=False, show_level=True)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    file_name = log_cfg.get("file")
    if file_name:
        file_path = Path(str(file_name))
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(file_handler)

    return logger


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)
