"""
Thread-pool sampler built on top of ProcParser.

This module shows how a collection loop consumes the parser's status
signals:

- NOT_FOUND: the process exited between enumeration and parsing. Routine,
  the PID is skipped for this round without any alert.
- FORMAT_ERROR: the file does not match the expected layout, which usually
  means a kernel this build was not validated against. Logged as a warning
  once per (kernel release, file) combination to avoid log storms.
- CONFIG_ERROR: fatal for the whole pass, raised as SystemConfigError.
  ProcParser itself raises SystemConfigError at construction and never
  returns this code; the branch serves parser substitutes (recorded
  captures, test doubles) that report a lost configuration per call.

The sampler keeps counters but never caches records between calls.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..models.config import SamplerConfig
from ..models.records import NetworkStats, ProcessStats, SystemStats
from ..models.status import Status, StatusCode
from ..parser.proc_parser import ProcParser
from ..validation import SystemConfigError

logger = logging.getLogger(__name__)


@dataclass
class ProcessSample:
    """
    Everything sampled for one process in one round.

    Attributes:
        pid: Process ID.
        start_time_ticks: Start time in clock ticks since boot; together with
            the PID this identifies the process across PID reuse.
        cmdline: Space-joined command line, "" for kernel threads.
        stats: CPU, memory and I/O usage.
        network: Network counters of the process's namespace.
        statuses: Outcome per file read, keyed by the file's name below {pid}/.
    """

    pid: int
    start_time_ticks: int
    cmdline: str
    stats: ProcessStats
    network: NetworkStats
    statuses: Dict[str, Status] = field(default_factory=dict)


@dataclass
class SystemSample:
    """Host-wide figures with the outcome of each file read."""

    stats: SystemStats
    statuses: Dict[str, Status] = field(default_factory=dict)


class FormatErrorReporter:
    """
    Logs a FORMAT_ERROR once per (kernel release, file) combination.

    Later occurrences for the same combination are only counted.
    """

    def __init__(self, kernel_release: Optional[str] = None):
        self.kernel_release = kernel_release or os.uname().release
        self._reported: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()

    def report(self, file_name: str, status: Status) -> bool:
        """
        Record a format error.

        Returns:
            True if this call emitted the warning, False if it was suppressed.
        """
        key = (self.kernel_release, file_name)
        with self._lock:
            if key in self._reported:
                return False
            self._reported.add(key)
        logger.warning(
            f"Unexpected format of '{file_name}' on kernel {self.kernel_release}: "
            f"{status.message}. Further errors for this file are suppressed."
        )
        return True


class ProcSampler:
    """
    Samples a batch of PIDs concurrently with a ThreadPoolExecutor.

    Args:
        parser: Shared ProcParser. Parse operations are thread-safe.
        config: Worker pool settings.
        reporter: Format error de-duplication; a fresh one by default.
    """

    def __init__(
        self,
        parser: ProcParser,
        config: Optional[SamplerConfig] = None,
        reporter: Optional[FormatErrorReporter] = None,
    ):
        self.parser = parser
        self.config = config or SamplerConfig()
        self.reporter = reporter or FormatErrorReporter()
        self._lock = threading.Lock()

        self.stats = {
            "pids_requested": 0,
            "pids_sampled": 0,
            "pids_vanished": 0,
            "format_errors": 0,
            "permission_denied": 0,
            "io_errors": 0,
        }

    def _count(self, key: str) -> None:
        with self._lock:
            self.stats[key] += 1

    def _check(self, file_name: str, status: Status) -> None:
        if status.code is StatusCode.CONFIG_ERROR:
            raise SystemConfigError(status.message)
        if status.code is StatusCode.FORMAT_ERROR:
            self._count("format_errors")
            self.reporter.report(file_name, status)
        elif status.code is StatusCode.PERMISSION_DENIED:
            self._count("permission_denied")
        elif status.code is StatusCode.IO_ERROR:
            self._count("io_errors")
            logger.debug(f"I/O error sampling '{file_name}': {status.message}")

    def sample_pid(self, pid: int) -> Optional[ProcessSample]:
        """
        Sample one process.

        Returns:
            The sample, or None if the process vanished during sampling.

        Raises:
            SystemConfigError: If the parser reports a configuration error
        """
        stats = ProcessStats()
        network = NetworkStats()
        statuses = {
            "stat": self.parser.parse_proc_pid_stat(pid, stats),
            "io": self.parser.parse_proc_pid_stat_io(pid, stats),
            "net/dev": self.parser.parse_proc_pid_net_dev(pid, network),
        }

        if any(status.is_not_found for status in statuses.values()):
            logger.debug(f"pid {pid} vanished during sampling, skipping")
            self._count("pids_vanished")
            return None

        for file_name, status in statuses.items():
            self._check(file_name, status)

        sample = ProcessSample(
            pid=pid,
            start_time_ticks=self.parser.get_pid_start_time_ticks(pid),
            cmdline=self.parser.get_pid_cmdline(pid),
            stats=stats,
            network=network,
            statuses=statuses,
        )
        self._count("pids_sampled")
        return sample

    def sample(self, pids: Iterable[int]) -> List[ProcessSample]:
        """
        Sample a batch of processes concurrently.

        Returns:
            Samples in the order of `pids`, without the processes that vanished.

        Raises:
            SystemConfigError: If any worker hits a configuration error
        """
        pid_list = list(pids)
        with self._lock:
            self.stats["pids_requested"] += len(pid_list)
        if not pid_list:
            return []

        workers = min(self.config.max_workers, len(pid_list))
        with ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix=self.config.thread_name_prefix,
        ) as executor:
            results = list(executor.map(self.sample_pid, pid_list))

        samples = [sample for sample in results if sample is not None]
        logger.info(
            f"Sampled {len(samples)}/{len(pid_list)} processes "
            f"({len(pid_list) - len(samples)} vanished)"
        )
        return samples

    def sample_system(self) -> SystemSample:
        """
        Sample host-wide CPU and memory figures.

        Raises:
            SystemConfigError: If the parser reports a configuration error
        """
        stats = SystemStats()
        statuses = {
            "stat": self.parser.parse_proc_stat(stats),
            "meminfo": self.parser.parse_proc_meminfo(stats),
        }
        for file_name, status in statuses.items():
            if status.is_not_found:
                logger.error(f"Host file '{file_name}' missing below {self.parser.proc_root}")
                continue
            self._check(file_name, status)
        return SystemSample(stats=stats, statuses=statuses)

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of the sampler counters."""
        with self._lock:
            return dict(self.stats)
