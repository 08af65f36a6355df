"""
cdxhistory utilities module.
"""

from cdxhistory.utils.config import CdxConfig, Settings, get_settings
from cdxhistory.utils.errors import (
    ConfigurationError,
    DateParseError,
    ErrorCode,
    HistoryLoaderError,
    NetworkError,
    ProtocolError,
)
from cdxhistory.utils.logging import LogContext, configure_logging, get_logger

__all__ = [
    # Config
    "CdxConfig",
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "HistoryLoaderError",
    "ConfigurationError",
    "NetworkError",
    "ProtocolError",
    "DateParseError",
    # Logging
    "get_logger",
    "configure_logging",
    "LogContext",
]
