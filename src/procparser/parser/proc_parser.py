"""
Parser for the Linux /proc pseudo-filesystem.

ProcParser owns the format knowledge for each /proc file family it reads,
converts kernel units (clock ticks, pages, kB) into nanoseconds and bytes,
and classifies failures. Each public operation:

- resolves its path below the configured proc root,
- reads the file inside the call (handles are always released),
- parses it according to that file's grammar,
- writes the result into a caller-owned record,
- returns a Status instead of raising.

Nothing is cached and nothing is retried; a process disappearing between
enumeration and parsing simply yields a NOT_FOUND status.

Example:
    parser = ProcParser(HostSystemConfig())
    stats = ProcessStats()
    status = parser.parse_proc_pid_stat(pid, stats)
    if status.is_not_found:
        ...  # process exited, skip it this round
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..models.config import NetDevPolicy
from ..models.records import NetworkStats, ProcessStats, ProcessStatus, SystemStats
from ..models.status import Status
from ..system.proc_files import ProcPathResolver
from ..system.sysconfig import SystemConfig
from ..validation import (
    ProcFormatError,
    ProcNotFoundError,
    ProcPermissionError,
    SystemConfigError,
    handle_error,
    ErrorSeverity,
)

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000
BYTES_PER_KB = 1024

LOOPBACK_INTERFACE = "lo"

# --- {pid}/net/dev ---
# Two header lines, then "iface: <8 receive counters> <8 transmit counters>".
_NET_DEV_HEADER_LINES = 2
_NET_DEV_NUM_COUNTERS = 16
_NET_DEV_RX_BYTES = 0
_NET_DEV_RX_PACKETS = 1
_NET_DEV_RX_ERRS = 2
_NET_DEV_RX_DROP = 3
_NET_DEV_TX_BYTES = 8
_NET_DEV_TX_PACKETS = 9
_NET_DEV_TX_ERRS = 10
_NET_DEV_TX_DROP = 11

# --- {pid}/stat ---
# 1-indexed positions counted after the parenthesized name field, i.e. the
# proc(5) field number minus two.
_STAT_MINFLT = 8
_STAT_MAJFLT = 10
_STAT_UTIME = 12
_STAT_STIME = 13
_STAT_NUM_THREADS = 18
_STAT_STARTTIME = 20
_STAT_VSIZE = 21
_STAT_RSS = 22
_STAT_MIN_FIELDS = _STAT_RSS

# --- /proc/stat "cpu" line ---
_CPU_USER = 1
_CPU_NICE = 2
_CPU_SYSTEM = 3
_CPU_IRQ = 6
_CPU_SOFTIRQ = 7
_CPU_MIN_TOKENS = _CPU_SOFTIRQ + 1

# --- key: value tables ---
_IO_FIELDS = {
    "rchar": "rchar_bytes",
    "wchar": "wchar_bytes",
    "read_bytes": "read_bytes",
    "write_bytes": "write_bytes",
}

_MEMINFO_FIELDS = {
    "MemTotal": "mem_total_bytes",
    "MemFree": "mem_free_bytes",
    "MemAvailable": "mem_available_bytes",
    "Buffers": "mem_buffer_bytes",
    "Cached": "mem_cached_bytes",
    "SwapCached": "mem_swap_cached_bytes",
    "Active": "mem_active_bytes",
    "Inactive": "mem_inactive_bytes",
}

_STATUS_KB_FIELDS = {
    "VmPeak": "vm_peak_bytes",
    "VmSize": "vm_size_bytes",
    "VmLck": "vm_lck_bytes",
    "VmPin": "vm_pin_bytes",
    "VmHWM": "vm_hwm_bytes",
    "VmRSS": "vm_rss_bytes",
    "RssAnon": "rss_anon_bytes",
    "RssFile": "rss_file_bytes",
    "RssShmem": "rss_shmem_bytes",
    "VmData": "vm_data_bytes",
    "VmStk": "vm_stk_bytes",
    "VmExe": "vm_exe_bytes",
    "VmLib": "vm_lib_bytes",
    "VmPTE": "vm_pte_bytes",
    "VmSwap": "vm_swap_bytes",
    "HugetlbPages": "hugetlb_pages_bytes",
}

_STATUS_COUNT_FIELDS = {
    "voluntary_ctxt_switches": "voluntary_ctxt_switches",
    "nonvoluntary_ctxt_switches": "nonvoluntary_ctxt_switches",
}

_DELETED_SUFFIX = " (deleted)"


def _to_int(token: str, what: str, path: Path) -> int:
    # Counters are unsigned decimal; int() alone would take "+5", "-1" and "1_000"
    if not token.isdigit():
        raise ProcFormatError(f"{path}: {what} is not an unsigned integer: '{token}'", path=path)
    try:
        return int(token)
    except ValueError:
        raise ProcFormatError(f"{path}: {what} is not an integer: '{token}'", path=path)


def parse_key_value_lines(lines: List[str]) -> Dict[str, List[str]]:
    """
    Split `Key: value [unit]` lines into a mapping of key to value tokens.

    Lines without a colon are skipped. Values are kept as raw tokens so only
    the keys a caller cares about are ever converted.
    """
    table: Dict[str, List[str]] = {}
    for line in lines:
        key, sep, rest = line.partition(":")
        if not sep:
            continue
        table[key.strip()] = rest.split()
    return table


def split_pid_stat_line(line: str, path: Path) -> Tuple[str, List[str]]:
    """
    Split a `{pid}/stat` line into the process name and the fields after it.

    The name is everything between the first '(' and the last ')', so names
    that themselves contain parentheses or spaces are isolated correctly.

    Raises:
        ProcFormatError: If the name delimiters are missing
    """
    open_idx = line.find("(")
    close_idx = line.rfind(")")
    if open_idx == -1 or close_idx == -1 or close_idx < open_idx:
        raise ProcFormatError(f"{path}: unable to locate process name in '{line}'", path=path)
    return line[open_idx + 1:close_idx], line[close_idx + 1:].split()


def _stat_field(fields: List[str], position: int) -> str:
    return fields[position - 1]


def sum_net_dev_lines(lines: List[str], policy: NetDevPolicy, path: Path) -> NetworkStats:
    """
    Sum the counters of interest over the interface lines of a net/dev file.

    Args:
        lines: All lines of the file, header included.
        policy: Which interfaces to leave out of the sum.
        path: File path, for error messages.

    Raises:
        ProcFormatError: If the header is missing or an interface line is malformed
    """
    if len(lines) < _NET_DEV_HEADER_LINES:
        raise ProcFormatError(f"{path}: missing header lines", path=path)

    excluded = set(policy.excluded_interfaces)
    if policy.exclude_loopback:
        excluded.add(LOOPBACK_INTERFACE)

    totals = NetworkStats()
    for line in lines[_NET_DEV_HEADER_LINES:]:
        if not line.strip():
            continue

        # Counters may be glued to the colon ("eth0:1234 ...") on older kernels.
        iface, sep, rest = line.partition(":")
        iface = iface.strip()
        if not sep or not iface:
            raise ProcFormatError(f"{path}: malformed interface line '{line}'", path=path)
        if iface in excluded:
            continue

        counters = rest.split()
        if len(counters) < _NET_DEV_NUM_COUNTERS:
            raise ProcFormatError(
                f"{path}: expected {_NET_DEV_NUM_COUNTERS} counters for '{iface}', "
                f"got {len(counters)}",
                path=path,
            )
        values = [_to_int(token, f"{iface} counter", path) for token in counters]

        totals.rx_bytes += values[_NET_DEV_RX_BYTES]
        totals.rx_packets += values[_NET_DEV_RX_PACKETS]
        totals.rx_errs += values[_NET_DEV_RX_ERRS]
        totals.rx_drops += values[_NET_DEV_RX_DROP]
        totals.tx_bytes += values[_NET_DEV_TX_BYTES]
        totals.tx_packets += values[_NET_DEV_TX_PACKETS]
        totals.tx_errs += values[_NET_DEV_TX_ERRS]
        totals.tx_drops += values[_NET_DEV_TX_DROP]

    return totals


def join_cmdline(raw: bytes) -> str:
    """
    Turn the NUL-separated bytes of a cmdline file into a single string.

    Arguments are joined with one space; trailing NUL separators are dropped.
    Spaces inside an argument are kept verbatim.
    """
    args = raw.rstrip(b"\0")
    if not args:
        return ""
    return " ".join(arg.decode("utf-8", errors="replace") for arg in args.split(b"\0"))


class ProcParser:
    """
    Reads /proc files for a process or the whole host.

    Safe to share between threads: the only state is the immutable
    SystemConfig values captured at construction.

    Args:
        sysconfig: Provider of page size, tick rate, clock offset and proc root.
        net_dev_policy: Which interfaces `parse_proc_pid_net_dev` leaves out.
            Defaults to excluding loopback.

    Raises:
        SystemConfigError: If sysconfig is not initialized or its values are unusable
    """

    def __init__(self, sysconfig: SystemConfig, net_dev_policy: Optional[NetDevPolicy] = None):
        try:
            if sysconfig is None or not sysconfig.has_config():
                raise SystemConfigError("System config is not initialized")
        except SystemConfigError as e:
            handle_error(
                error=e,
                context="creating ProcParser",
                severity=ErrorSeverity.CRITICAL,
                reraise=True,
                logger=logger,
            )

        ticks_per_second = sysconfig.kernel_ticks_per_second()
        page_size = sysconfig.page_size()
        if ticks_per_second <= 0 or page_size <= 0:
            raise SystemConfigError(
                f"Invalid system config: ticks_per_second={ticks_per_second}, page_size={page_size}"
            )

        self._ticks_per_second = ticks_per_second
        self._bytes_per_page = page_size
        self._clock_realtime_offset = sysconfig.clock_realtime_offset()
        self._files = ProcPathResolver(sysconfig.proc_path())
        self.net_dev_policy = net_dev_policy or NetDevPolicy()

    @property
    def proc_root(self) -> Path:
        return self._files.proc_root

    def ticks_to_ns(self, ticks: int) -> int:
        """Convert kernel clock ticks to nanoseconds without floating point loss."""
        return ticks * NS_PER_SECOND // self._ticks_per_second

    def _run(self, context: str, operation: Callable[[], None]) -> Status:
        """Run a parse step and convert its exceptions into a Status."""
        try:
            operation()
        except ProcNotFoundError as e:
            logger.debug(f"{context}: {e}")
            return Status.not_found(str(e), e.path)
        except ProcFormatError as e:
            logger.debug(f"{context}: {e}")
            return Status.format_error(str(e), e.path)
        except ProcPermissionError as e:
            logger.debug(f"{context}: {e}")
            return Status.permission_denied(str(e), e.path)
        except OSError as e:
            logger.debug(f"{context}: I/O error: {e}")
            return Status.io_error(f"{context}: {e}", getattr(e, "filename", None))
        return Status.ok()

    # --- per-process files ---

    def parse_proc_pid_net_dev(self, pid: int, out: NetworkStats) -> Status:
        """
        Sum the network counters of `{pid}/net/dev` into `out`.

        Interfaces named by the parser's NetDevPolicy (loopback by default)
        are left out of the sum.
        """
        path = self._files.pid_path(pid, "net/dev")

        def parse() -> None:
            totals = sum_net_dev_lines(self._files.read_lines(path), self.net_dev_policy, path)
            out.rx_bytes = totals.rx_bytes
            out.rx_packets = totals.rx_packets
            out.rx_errs = totals.rx_errs
            out.rx_drops = totals.rx_drops
            out.tx_bytes = totals.tx_bytes
            out.tx_packets = totals.tx_packets
            out.tx_errs = totals.tx_errs
            out.tx_drops = totals.tx_drops

        return self._run(f"parse net/dev of pid {pid}", parse)

    def parse_proc_pid_stat_io(self, pid: int, out: ProcessStats) -> Status:
        """Fill the I/O byte counters of `out` from `{pid}/io`."""
        path = self._files.pid_path(pid, "io")

        def parse() -> None:
            table = parse_key_value_lines(self._files.read_lines(path))
            values = {}
            for key, attr in _IO_FIELDS.items():
                tokens = table.get(key)
                if not tokens:
                    raise ProcFormatError(f"{path}: missing required key '{key}'", path=path)
                values[attr] = _to_int(tokens[0], key, path)
            for attr, value in values.items():
                setattr(out, attr, value)

        return self._run(f"parse io of pid {pid}", parse)

    def parse_proc_pid_stat(self, pid: int, out: ProcessStats) -> Status:
        """
        Fill name, CPU time, thread count, faults and memory of `out` from `{pid}/stat`.

        utime/stime are converted from clock ticks to nanoseconds and rss
        from pages to bytes.
        """
        path = self._files.pid_path(pid, "stat")

        def parse() -> None:
            name, fields = split_pid_stat_line(self._files.read_text(path).rstrip("\n"), path)
            if len(fields) < _STAT_MIN_FIELDS:
                raise ProcFormatError(
                    f"{path}: expected at least {_STAT_MIN_FIELDS} fields after the name, "
                    f"got {len(fields)}",
                    path=path,
                )

            def field(position: int, what: str) -> int:
                return _to_int(_stat_field(fields, position), what, path)

            minor_faults = field(_STAT_MINFLT, "minflt")
            major_faults = field(_STAT_MAJFLT, "majflt")
            utime_ticks = field(_STAT_UTIME, "utime")
            stime_ticks = field(_STAT_STIME, "stime")
            num_threads = field(_STAT_NUM_THREADS, "num_threads")
            vsize = field(_STAT_VSIZE, "vsize")
            rss_pages = field(_STAT_RSS, "rss")

            out.process_name = name
            out.minor_faults = minor_faults
            out.major_faults = major_faults
            out.utime_ns = self.ticks_to_ns(utime_ticks)
            out.ktime_ns = self.ticks_to_ns(stime_ticks)
            out.num_threads = num_threads
            out.vsize_bytes = vsize
            out.rss_bytes = rss_pages * self._bytes_per_page

        return self._run(f"parse stat of pid {pid}", parse)

    def parse_proc_pid_status(self, pid: int, out: ProcessStatus) -> Status:
        """
        Fill `out` from the memory and context-switch lines of `{pid}/status`.

        Keys missing from the file (kernel threads have no Vm* lines) are
        reported as 0.
        """
        path = self._files.pid_path(pid, "status")

        def parse() -> None:
            table = parse_key_value_lines(self._files.read_lines(path))
            values = {}
            for key, attr in _STATUS_KB_FIELDS.items():
                tokens = table.get(key)
                values[attr] = _to_int(tokens[0], key, path) * BYTES_PER_KB if tokens else 0
            for key, attr in _STATUS_COUNT_FIELDS.items():
                tokens = table.get(key)
                values[attr] = _to_int(tokens[0], key, path) if tokens else 0
            for attr, value in values.items():
                setattr(out, attr, value)

        return self._run(f"parse status of pid {pid}", parse)

    def get_pid_start_time_ticks(self, pid: int) -> int:
        """
        Return the start time of `pid` in clock ticks since boot.

        PID plus start time identifies a process even after the PID is
        reused. Returns 0 when the process is gone or its stat is malformed.
        """
        path = self._files.pid_path(pid, "stat")
        try:
            _, fields = split_pid_stat_line(self._files.read_text(path).rstrip("\n"), path)
            if len(fields) < _STAT_STARTTIME:
                raise ProcFormatError(f"{path}: no starttime field", path=path)
            return _to_int(_stat_field(fields, _STAT_STARTTIME), "starttime", path)
        except (ProcNotFoundError, ProcFormatError, ProcPermissionError) as e:
            logger.debug(f"Unable to read start time of pid {pid}: {e}")
        except OSError as e:
            logger.debug(f"I/O error reading start time of pid {pid}: {e}")
        return 0

    def get_pid_start_time_ns(self, pid: int) -> int:
        """
        Return the start time of `pid` as wall-clock nanoseconds since the epoch.

        Returns 0 when the start time is unknown.
        """
        ticks = self.get_pid_start_time_ticks(pid)
        if ticks == 0:
            return 0
        return self.ticks_to_ns(ticks) + self._clock_realtime_offset

    def get_pid_cmdline(self, pid: int) -> str:
        """
        Return the command line of `pid` with arguments separated by single spaces.

        Returns "" for kernel threads, zombies and processes that are gone.
        """
        path = self._files.pid_path(pid, "cmdline")
        try:
            return join_cmdline(self._files.read_bytes(path))
        except (ProcNotFoundError, ProcPermissionError) as e:
            logger.debug(f"Unable to read cmdline of pid {pid}: {e}")
        except OSError as e:
            logger.debug(f"I/O error reading cmdline of pid {pid}: {e}")
        return ""

    def read_proc_pid_fd_link(self, pid: int, fd: int) -> Tuple[Status, str]:
        """
        Return the target of the `{pid}/fd/{fd}` symlink, unmodified.

        Targets are real paths or pseudo-targets such as `socket:[12345]`
        and `pipe:[6789]`. A missing fd yields a NOT_FOUND status and "".
        """
        path = self._files.pid_path(pid, f"fd/{fd}")
        target: List[str] = []

        def read() -> None:
            target.append(self._files.read_link(path))

        status = self._run(f"read fd {fd} of pid {pid}", read)
        return status, (target[0] if target else "")

    def get_exe_path(self, pid: int) -> Tuple[Status, Optional[Path]]:
        """
        Return the executable of `pid` from the `{pid}/exe` symlink.

        The " (deleted)" marker the kernel appends for unlinked binaries is
        stripped.
        """
        path = self._files.pid_path(pid, "exe")
        target: List[str] = []

        def read() -> None:
            target.append(self._files.read_link(path))

        status = self._run(f"read exe of pid {pid}", read)
        if not status:
            return status, None
        exe = target[0]
        if exe.endswith(_DELETED_SUFFIX):
            exe = exe[:-len(_DELETED_SUFFIX)]
        return status, Path(exe)

    # --- host-wide files ---

    def parse_proc_stat(self, out: SystemStats) -> Status:
        """
        Fill the host CPU times of `out` from the aggregate `cpu` line of `/proc/stat`.

        User time is user + nice; kernel time is system + irq + softirq.
        """
        path = self._files.system_path("stat")

        def parse() -> None:
            for line in self._files.read_lines(path):
                tokens = line.split()
                if not tokens or tokens[0] != "cpu":
                    continue
                if len(tokens) < _CPU_MIN_TOKENS:
                    raise ProcFormatError(
                        f"{path}: cpu line has {len(tokens) - 1} counters, "
                        f"expected at least {_CPU_MIN_TOKENS - 1}",
                        path=path,
                    )
                user = _to_int(tokens[_CPU_USER], "cpu user", path)
                nice = _to_int(tokens[_CPU_NICE], "cpu nice", path)
                system = _to_int(tokens[_CPU_SYSTEM], "cpu system", path)
                irq = _to_int(tokens[_CPU_IRQ], "cpu irq", path)
                softirq = _to_int(tokens[_CPU_SOFTIRQ], "cpu softirq", path)

                out.cpu_utime_ns = self.ticks_to_ns(user + nice)
                out.cpu_ktime_ns = self.ticks_to_ns(system + irq + softirq)
                return
            raise ProcFormatError(f"{path}: no aggregate cpu line", path=path)

        return self._run("parse /proc/stat", parse)

    def parse_proc_meminfo(self, out: SystemStats) -> Status:
        """Fill the memory fields of `out` from `/proc/meminfo`, converting kB to bytes."""
        path = self._files.system_path("meminfo")

        def parse() -> None:
            table = parse_key_value_lines(self._files.read_lines(path))
            values = {}
            for key, attr in _MEMINFO_FIELDS.items():
                tokens = table.get(key)
                if not tokens:
                    raise ProcFormatError(f"{path}: missing required key '{key}'", path=path)
                if len(tokens) > 1 and tokens[1] != "kB":
                    raise ProcFormatError(
                        f"{path}: unexpected unit '{tokens[1]}' for '{key}'", path=path
                    )
                values[attr] = _to_int(tokens[0], key, path) * BYTES_PER_KB
            for attr, value in values.items():
                setattr(out, attr, value)

        return self._run("parse /proc/meminfo", parse)
