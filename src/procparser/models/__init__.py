"""
Data models for procparser.

- config: configuration structures loaded from TOML
- records: resource-usage records filled in by the parser
- status: the success/failure signal returned by parse operations
"""

from .config import (
    AppConfig,
    LoggingConfig,
    NetDevPolicy,
    ParserConfig,
    SamplerConfig,
)
from .records import (
    NetworkStats,
    ProcessStats,
    ProcessStatus,
    SystemStats,
)
from .status import Status, StatusCode

__all__ = [
    # Configuration
    "AppConfig",
    "LoggingConfig",
    "NetDevPolicy",
    "ParserConfig",
    "SamplerConfig",
    # Records
    "NetworkStats",
    "ProcessStats",
    "ProcessStatus",
    "SystemStats",
    # Status
    "Status",
    "StatusCode",
]
