import os
import sys

from loguru import logger


def setup_logging(log_path: str | None = None, level: str | None = None) -> None:
    from clockbot.config import settings

    log_path = log_path if log_path is not None else settings.log_path
    level = level or settings.log_level

    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger.remove()
    logger.add(sys.stdout, level=level)
    if log_path:
        logger.add(log_path, rotation="10 MB", level=level)
