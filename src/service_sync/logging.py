"""Logging configuration for service sync."""

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward loguru."""

    def emit(self, record):
        # Get corresponding loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_level: str):
    """Configure loguru logging for processes running the relay.

    Args:
        log_level: Log level to use (from settings or CLI options).
    """
    log_level = log_level.upper()

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        colorize=True,
    )

    logger.debug(f"Log level set to: {log_level}")

    # Redirect standard logging (redis-py, asyncio) to loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in ("redis", "asyncio", "service_sync"):
        logging_logger = logging.getLogger(name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False
        logging_logger.setLevel(log_level if log_level != "TRACE" else "DEBUG")
