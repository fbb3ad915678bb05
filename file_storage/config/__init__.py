"""
File Storage Configuration

Logging setup lives here; environment settings are in ``settings``.
"""

from .loguru_config import LoguruConfig, get_logger, loguru_config, setup_logging

__all__ = [
    "LoguruConfig",
    "get_logger",
    "loguru_config",
    "setup_logging",
]
