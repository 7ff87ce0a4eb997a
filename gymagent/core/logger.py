"""Loguru setup for the coach agent.

Every record carries a `session_id` extra. The orchestrator binds it for the
duration of a turn; records logged outside a turn show "-".
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[session_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    json_logs: bool = False,
) -> None:
    """Configure console output and an optional rotating file sink.

    Args:
        level: Minimum level for every sink (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path of a JSON-lines log file; console only when None
        rotation: When to rotate the file sink (e.g. "10 MB", "1 day")
        retention: How long rotated files are kept (e.g. "7 days")
        json_logs: Emit serialized JSON records on the console instead of text
    """
    logger.remove()
    logger.configure(extra={"session_id": "-"})

    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            serialize=True,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.info("Logger initialized", level=level, log_file=log_file, json_logs=json_logs)
