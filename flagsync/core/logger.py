from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional


def setup_logging(log_dir: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger("flagsync")
    logger.setLevel(level)
    logger.propagate = False

    if log_dir and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        os.makedirs(log_dir, exist_ok=True)
        text_path = os.path.join(log_dir, "flagsync.log")
        h = RotatingFileHandler(text_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        h.setFormatter(fmt)
        logger.addHandler(h)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("[flagsync] %(levelname)s %(message)s"))
        logger.addHandler(sh)

    return logger


def get_logger(component: str) -> logging.Logger:
    return logging.getLogger(f"flagsync.{component}")
