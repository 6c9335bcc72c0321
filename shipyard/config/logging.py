"""Process-wide logging configuration."""

import logging
import sys

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def config_setup_logging(log_level: str = "INFO") -> None:
    """Configure root logging once for the running process.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        None: Handlers are installed as a side effect.
    """

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not any(getattr(handler, "_shipyard_handler", False) for handler in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        console_handler._shipyard_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("shipyard").setLevel(level)
    # kubernetes client logs full request bodies at debug
    logging.getLogger("kubernetes").setLevel(max(level, logging.INFO))
