"""
Centralized logger for the orchestrator extension.

Provides configurable logging with file and console output,
level filtering, and consistent formatting.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from config.orchestrator_config import ORCHESTRATOR_CONSTANTS, get_log_level


class OrchestratorLogger:
    """
    Centralized logger for jobs, clients and validators with file and console output.
    """

    _loggers = {}

    @staticmethod
    def get_logger(
        name: str,
        log_dir: Optional[str] = None,
        level: Optional[int] = None,
        console_output: bool = True,
    ) -> logging.Logger:
        """
        Returns (or creates) a configured logger.

        Args:
            name: Logger name (e.g. "DeviceApiClient", "InventoryJob")
            log_dir: Directory for log files (default: AXIS_ORCHESTRATOR_LOG_DIR)
            level: Minimum level (default: AXIS_ORCHESTRATOR_LOG_LEVEL or INFO)
            console_output: If True, also log to stdout

        Returns:
            Configured logger ready to use
        """
        if name in OrchestratorLogger._loggers:
            return OrchestratorLogger._loggers[name]

        if level is None:
            level = get_log_level()
        if log_dir is None:
            log_dir = ORCHESTRATOR_CONSTANTS.LOG_DIR

        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False

        # Avoid duplicated handlers when the logging module already knows the name
        logger.handlers.clear()

        # [2026-10-09 14:30:45] [DeviceApiClient] [INFO] Message
        formatter = logging.Formatter(
            fmt="[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path / f"{name}.log", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        OrchestratorLogger._loggers[name] = logger
        return logger

    @staticmethod
    def set_level(name: str, level: int):
        """Changes log level for an existing logger."""
        if name in OrchestratorLogger._loggers:
            logger = OrchestratorLogger._loggers[name]
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)

    @staticmethod
    def clear_cache():
        """Clears logger cache."""
        OrchestratorLogger._loggers.clear()


def flatten_exception(error: BaseException) -> str:
    """
    Renders an exception and its chained causes on one line.

    Args:
        error: exception to flatten

    Returns:
        "Type: message <- CauseType: cause message ..."
    """
    parts = []
    seen = set()
    current = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(f"{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return " <- ".join(parts)
