"""
procparser: typed resource-usage records from the Linux /proc filesystem.

The package is organized into specialized modules:
- system: host constants (SystemConfig) and scoped reads below the proc root
- models: record types and the Status signal returned by parse operations
- parser: ProcParser, one method per /proc file family
- validation: exception taxonomy, error handling and value validation
- config: TOML configuration loading and validation
- collectors: a thread-pool sampler consuming the parser's status signals
- cli: command-line interface

Usage:
    From command line:
        procparser pid 1234

    Programmatically:
        from procparser import HostSystemConfig, ProcParser, ProcessStats
        parser = ProcParser(HostSystemConfig())
        stats = ProcessStats()
        status = parser.parse_proc_pid_stat(1234, stats)
"""

from .models import (
    NetDevPolicy,
    NetworkStats,
    ProcessStats,
    ProcessStatus,
    Status,
    StatusCode,
    SystemStats,
)
from .parser import LOOPBACK_INTERFACE, ProcParser
from .system import (
    HostSystemConfig,
    StaticSystemConfig,
    SystemConfig,
    get_system_config,
)
from .validation import (
    ProcFormatError,
    ProcNotFoundError,
    ProcParseError,
    SystemConfigError,
    ValidationError,
)
from .collectors import ProcSampler
from .config import get_config, clear_config_cache, set_config_path

__version__ = "1.0.0"

__all__ = [
    # Parser
    "ProcParser",
    "LOOPBACK_INTERFACE",
    # System configuration
    "SystemConfig",
    "HostSystemConfig",
    "StaticSystemConfig",
    "get_system_config",
    # Records
    "NetDevPolicy",
    "NetworkStats",
    "ProcessStats",
    "ProcessStatus",
    "SystemStats",
    "Status",
    "StatusCode",
    # Errors
    "ProcParseError",
    "ProcNotFoundError",
    "ProcFormatError",
    "SystemConfigError",
    "ValidationError",
    # Sampling and configuration
    "ProcSampler",
    "get_config",
    "clear_config_cache",
    "set_config_path",
]
