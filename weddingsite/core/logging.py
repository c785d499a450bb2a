# weddingsite/core/logging.py
import sys

from loguru import logger

from weddingsite import config

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "{extra[request_id]} | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str | None = None) -> None:
    """Un único sink a stderr con el nivel de LOG_LEVEL; request_id por defecto '-'."""
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    logger.add(
        sys.stderr,
        level=(level or config.LOG_LEVEL),
        format=_FORMAT,
        backtrace=not config.IS_PRODUCTION,
        diagnose=not config.IS_PRODUCTION,
    )
