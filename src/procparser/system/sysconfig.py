"""
Host-derived constants needed for unit conversion and path resolution.

SystemConfig is the interface the parser depends on. Two providers are
available:

- HostSystemConfig: reads page size and clock tick rate from the running
  host via sysconf, and measures the realtime/monotonic clock offset.
- StaticSystemConfig: explicit values, for fixture trees, containers with a
  relocated /proc mount, or replaying captures from another host.

Both are immutable once constructed. Construction fails with
SystemConfigError when the values cannot be determined, since every
conversion downstream would otherwise be silently wrong.
"""

import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..validation import SystemConfigError, handle_error, ErrorSeverity

logger = logging.getLogger(__name__)

DEFAULT_PROC_PATH = Path("/proc")

# Number of back-to-back clock readings averaged for the realtime offset.
_CLOCK_OFFSET_SAMPLES = 5


class SystemConfig(ABC):
    """
    Read-only access to the host constants used by the parser.

    Implementations must be safe for unsynchronized concurrent reads.
    """

    @abstractmethod
    def has_config(self) -> bool:
        """True once the provider was successfully initialized."""

    @abstractmethod
    def page_size(self) -> int:
        """Memory page size in bytes."""

    @abstractmethod
    def kernel_ticks_per_second(self) -> int:
        """Clock ticks per second (USER_HZ) used by /proc time fields."""

    @abstractmethod
    def clock_realtime_offset(self) -> int:
        """Nanoseconds to add to a monotonic timestamp to get wall-clock epoch time."""

    @abstractmethod
    def proc_path(self) -> Path:
        """Base directory standing in for the kernel's /proc mount."""


def _sysconf_positive(name: str) -> int:
    try:
        value = os.sysconf(name)
    except (ValueError, OSError, AttributeError) as e:
        raise SystemConfigError(f"Unable to read {name} from sysconf: {e}") from e
    if value <= 0:
        raise SystemConfigError(f"sysconf returned invalid {name}: {value}")
    return value


def measure_clock_realtime_offset(samples: int = _CLOCK_OFFSET_SAMPLES) -> int:
    """
    Measure CLOCK_REALTIME - CLOCK_MONOTONIC in nanoseconds.

    Each sample brackets a realtime reading between two monotonic readings
    and uses their midpoint; the result is the mean over all samples.

    Raises:
        SystemConfigError: If the clocks are not available on this platform
    """
    try:
        total = 0
        for _ in range(samples):
            mono_before = time.clock_gettime_ns(time.CLOCK_MONOTONIC)
            realtime = time.clock_gettime_ns(time.CLOCK_REALTIME)
            mono_after = time.clock_gettime_ns(time.CLOCK_MONOTONIC)
            total += realtime - (mono_before + mono_after) // 2
    except (AttributeError, OSError) as e:
        raise SystemConfigError(f"Unable to read system clocks: {e}") from e
    return total // samples


class HostSystemConfig(SystemConfig):
    """
    SystemConfig backed by the running host.

    Args:
        proc_path: Mount point of procfs. Defaults to /proc; containers that
            bind-mount the host's procfs elsewhere pass that path instead.

    Raises:
        SystemConfigError: If page size, tick rate or clocks are unavailable
    """

    def __init__(self, proc_path: Union[str, Path] = DEFAULT_PROC_PATH):
        try:
            self._page_size = _sysconf_positive("SC_PAGE_SIZE")
            self._ticks_per_second = _sysconf_positive("SC_CLK_TCK")
            self._clock_realtime_offset = measure_clock_realtime_offset()
        except SystemConfigError as e:
            handle_error(
                error=e,
                context="initializing host system config",
                severity=ErrorSeverity.CRITICAL,
                reraise=True,
                logger=logger,
            )
        self._proc_path = Path(proc_path)
        logger.info(
            f"Host system config: page_size={self._page_size}, "
            f"ticks_per_second={self._ticks_per_second}, proc_path={self._proc_path}"
        )

    def has_config(self) -> bool:
        return True

    def page_size(self) -> int:
        return self._page_size

    def kernel_ticks_per_second(self) -> int:
        return self._ticks_per_second

    def clock_realtime_offset(self) -> int:
        return self._clock_realtime_offset

    def proc_path(self) -> Path:
        return self._proc_path

    def __repr__(self) -> str:
        return (
            f"HostSystemConfig(page_size={self._page_size}, "
            f"ticks_per_second={self._ticks_per_second}, proc_path='{self._proc_path}')"
        )


@dataclass(frozen=True)
class StaticSystemConfig(SystemConfig):
    """
    SystemConfig with explicitly supplied values.

    Raises:
        SystemConfigError: If page size or tick rate is not a positive integer
    """

    page_size_bytes: int
    ticks_per_second: int
    clock_realtime_offset_ns: int = 0
    proc_root: Path = field(default=DEFAULT_PROC_PATH)

    def __post_init__(self):
        for name in ("page_size_bytes", "ticks_per_second"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise SystemConfigError(f"{name} must be a positive integer, got {value!r}")
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "proc_root", Path(self.proc_root))

    def has_config(self) -> bool:
        return True

    def page_size(self) -> int:
        return self.page_size_bytes

    def kernel_ticks_per_second(self) -> int:
        return self.ticks_per_second

    def clock_realtime_offset(self) -> int:
        return self.clock_realtime_offset_ns

    def proc_path(self) -> Path:
        return self.proc_root


# --- Process-wide host configuration ---

_SYSTEM_CONFIG: Optional[SystemConfig] = None
_SYSTEM_CONFIG_LOCK = threading.Lock()


def get_system_config(proc_path: Union[str, Path, None] = None) -> SystemConfig:
    """
    Get the process-wide HostSystemConfig, creating it on first use.

    Args:
        proc_path: Procfs mount point used when the config is first created.
            Ignored once the config exists; call reset_system_config() to
            rebuild with a different path.

    Raises:
        SystemConfigError: If the host configuration cannot be determined
    """
    global _SYSTEM_CONFIG
    with _SYSTEM_CONFIG_LOCK:
        if _SYSTEM_CONFIG is None:
            _SYSTEM_CONFIG = HostSystemConfig(proc_path or DEFAULT_PROC_PATH)
        elif proc_path is not None and Path(proc_path) != _SYSTEM_CONFIG.proc_path():
            logger.warning(
                f"System config already initialized with proc_path={_SYSTEM_CONFIG.proc_path()}, "
                f"ignoring requested {proc_path}"
            )
        return _SYSTEM_CONFIG


def reset_system_config() -> None:
    """Drop the process-wide system config so the next access rebuilds it."""
    global _SYSTEM_CONFIG
    with _SYSTEM_CONFIG_LOCK:
        _SYSTEM_CONFIG = None
