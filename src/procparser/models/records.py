"""
Resource-usage record types filled in by the /proc parser.

Every record is a plain value object: the caller creates it, hands it to a
ProcParser method to be overwritten, and owns it afterwards. All counters
default to zero so a fresh record is always in a usable state.
"""

from dataclasses import dataclass


@dataclass
class NetworkStats:
    """
    Network counters summed over the interfaces of a process's network namespace.

    All values are kernel-maintained, non-negative and monotonically
    non-decreasing for the life of the namespace.
    """

    rx_bytes: int = 0
    rx_packets: int = 0
    rx_drops: int = 0
    rx_errs: int = 0

    tx_bytes: int = 0
    tx_packets: int = 0
    tx_drops: int = 0
    tx_errs: int = 0


@dataclass
class ProcessStats:
    """
    Per-process CPU, memory and I/O usage.

    The CPU and memory fields come from `{pid}/stat`, the I/O fields from
    `{pid}/io`; each parse only touches its own fields.
    """

    # Free text, may contain spaces and parentheses.
    process_name: str = ""

    # Nanoseconds of CPU time since the process started.
    utime_ns: int = 0
    ktime_ns: int = 0

    num_threads: int = 0

    major_faults: int = 0
    minor_faults: int = 0

    vsize_bytes: int = 0
    rss_bytes: int = 0

    rchar_bytes: int = 0
    wchar_bytes: int = 0
    read_bytes: int = 0
    write_bytes: int = 0


@dataclass
class SystemStats:
    """Host-wide CPU time and memory figures from `/proc/stat` and `/proc/meminfo`."""

    cpu_utime_ns: int = 0
    cpu_ktime_ns: int = 0

    mem_total_bytes: int = 0
    mem_free_bytes: int = 0
    mem_available_bytes: int = 0

    mem_buffer_bytes: int = 0
    mem_cached_bytes: int = 0
    mem_swap_cached_bytes: int = 0

    mem_active_bytes: int = 0
    mem_inactive_bytes: int = 0


@dataclass
class ProcessStatus:
    """
    Memory and scheduling figures from `{pid}/status`.

    Kernel threads carry no Vm* lines, in which case the memory fields stay 0.
    """

    vm_peak_bytes: int = 0
    vm_size_bytes: int = 0
    vm_lck_bytes: int = 0
    vm_pin_bytes: int = 0
    vm_hwm_bytes: int = 0
    vm_rss_bytes: int = 0
    rss_anon_bytes: int = 0
    rss_file_bytes: int = 0
    rss_shmem_bytes: int = 0
    vm_data_bytes: int = 0
    vm_stk_bytes: int = 0
    vm_exe_bytes: int = 0
    vm_lib_bytes: int = 0
    vm_pte_bytes: int = 0
    vm_swap_bytes: int = 0
    hugetlb_pages_bytes: int = 0

    voluntary_ctxt_switches: int = 0
    nonvoluntary_ctxt_switches: int = 0
