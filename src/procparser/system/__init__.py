"""
System interaction utilities.

- sysconfig: host constants (page size, tick rate, clock offset, proc root)
  behind an injectable interface
- proc_files: path construction and scoped reads below the proc root
"""

from .proc_files import ProcPathResolver
from .sysconfig import (
    DEFAULT_PROC_PATH,
    HostSystemConfig,
    StaticSystemConfig,
    SystemConfig,
    get_system_config,
    measure_clock_realtime_offset,
    reset_system_config,
)

__all__ = [
    "DEFAULT_PROC_PATH",
    "HostSystemConfig",
    "ProcPathResolver",
    "StaticSystemConfig",
    "SystemConfig",
    "get_system_config",
    "measure_clock_realtime_offset",
    "reset_system_config",
]
