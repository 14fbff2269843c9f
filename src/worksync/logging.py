"""Logging configuration for worksync."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

LOGGER_NAME = "worksync"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Configure the worksync logger.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2=DEBUG, 3+=DEBUG including httpx)
        log_file: Optional path to write logs to file
    """
    if verbose == 0 and log_file is None:
        return

    level = logging.DEBUG if verbose >= 2 else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Repeated calls (tests, embedding) replace handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = []
    if verbose > 0:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # httpx request lines only at -vvv
    if verbose >= 3:
        for name in ("httpx", "httpcore"):
            httpx_logger = logging.getLogger(name)
            httpx_logger.setLevel(logging.DEBUG)
            for handler in handlers:
                httpx_logger.addHandler(handler)

    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("worksync starting | %s | level=%s", timestamp, logging.getLevelName(level))
