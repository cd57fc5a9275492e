import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from clinisched.settings.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """
    Replace loguru's default handler with the clinisched sinks.

    Console output goes to stderr so that command output on stdout stays
    machine readable. Everything from DEBUG up is kept in a daily file and
    errors in a separate one.

    Args:
        level: Console level, ``settings.LOG_LEVEL`` by default
        log_dir: Directory of the log files, ``settings.LOG_DIR`` by default
    """
    directory = Path(log_dir or settings.LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    logger.remove()

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level or settings.LOG_LEVEL)

    logger.add(
        directory / "clinisched_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="1 day",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
    )

    # Transition refusals are WARNING, only storage and CLI failures land here
    logger.add(
        directory / "errors_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="ERROR",
        rotation="1 day",
        retention="90 days",
        compression="zip",
        encoding="utf-8",
    )
