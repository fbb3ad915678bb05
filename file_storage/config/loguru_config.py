"""
Loguru Logging Configuration

This module provides centralized logging configuration for the file storage
layer.
"""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger


class LoguruConfig:
    """Loguru configuration manager."""

    def __init__(self):
        self._configured = False

    def remove_default_handlers(self):
        """Remove default loguru handlers."""
        logger.remove()
        self._configured = False

    def configure_console_logging(
        self,
        level: str = "INFO",
        format_string: Optional[str] = None,
        colorize: Optional[bool] = None,
        backtrace: bool = True,
        diagnose: bool = True,
    ):
        """Configure console logging."""
        if format_string is None:
            format_string = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            )

        if colorize is None:
            colorize = sys.stderr.isatty()

        logger.add(
            sys.stderr,
            format=format_string,
            level=level,
            colorize=colorize,
            backtrace=backtrace,
            diagnose=diagnose,
            filter=_with_default_name,
        )
        self._configured = True

    def configure_file_logging(
        self,
        log_dir: Union[str, Path],
        level: str = "INFO",
        format_string: Optional[str] = None,
        rotation: str = "1 day",
        retention: str = "30 days",
        compression: str = "zip",
        encoding: str = "utf-8",
        enqueue: bool = True,
    ):
        """Configure file logging."""
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        if format_string is None:
            format_string = (
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[name]}:{function}:{line} | "
                "{message}"
            )

        logger.add(
            log_dir / "file_storage.log",
            format=format_string,
            level=level,
            rotation=rotation,
            retention=retention,
            compression=compression,
            encoding=encoding,
            enqueue=enqueue,
            filter=_with_default_name,
        )

        # Errors get their own file
        logger.add(
            log_dir / "error.log",
            format=format_string,
            level="ERROR",
            rotation=rotation,
            retention=retention,
            compression=compression,
            encoding=encoding,
            enqueue=enqueue,
            filter=_with_default_name,
        )

        self._configured = True

    def configure_development_logging(self, log_dir: Union[str, Path] = "logs", level: str = "DEBUG"):
        """Configure development environment logging."""
        self.remove_default_handlers()
        self.configure_console_logging(level=level, colorize=True)
        self.configure_file_logging(log_dir=log_dir, level=level, rotation="10 MB", retention="7 days")

    def configure_production_logging(self, log_dir: Union[str, Path] = "logs", level: str = "INFO"):
        """Configure production environment logging."""
        self.remove_default_handlers()
        self.configure_console_logging(level="WARNING", colorize=False, backtrace=False, diagnose=False)
        self.configure_file_logging(log_dir=log_dir, level=level, rotation="100 MB", retention="30 days")

    def configure_testing_logging(self, level: str = "WARNING"):
        """Configure testing environment logging (console only, no files)."""
        self.remove_default_handlers()
        self.configure_console_logging(level=level, colorize=False, backtrace=False, diagnose=False)

    def get_logger(self, name: Optional[str] = None):
        """Get a configured logger instance."""
        if name:
            return logger.bind(name=name)
        return logger

    def is_configured(self) -> bool:
        """Check if logging has been configured."""
        return self._configured


def _with_default_name(record) -> bool:
    record["extra"].setdefault("name", record["name"])
    return True


# Global loguru configuration instance
loguru_config = LoguruConfig()


def setup_logging(
    environment: str = "development",
    log_dir: Union[str, Path] = "logs",
    level: Optional[str] = None,
) -> None:
    """
    Setup logging based on environment.

    Args:
        environment: Environment name (development, production, testing)
        log_dir: Directory for log files
        level: Level override for the environment preset
    """
    environment = environment.lower()

    if environment == "production":
        loguru_config.configure_production_logging(log_dir, level=(level or "INFO").upper())
    elif environment in ("testing", "test"):
        loguru_config.configure_testing_logging(level=(level or "WARNING").upper())
    else:
        loguru_config.configure_development_logging(log_dir, level=(level or "DEBUG").upper())

    logger.info(f"Logging configured for environment: {environment}")


def get_logger(name: Optional[str] = None):
    """Get a configured logger instance."""
    return loguru_config.get_logger(name=name)
