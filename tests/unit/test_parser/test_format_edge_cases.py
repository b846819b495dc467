"""
Edge cases of the /proc grammars and failure classification.

Covers process names with embedded parentheses, vanished processes,
truncated or malformed files, and the net/dev interface policy.
"""

from pathlib import Path

import pytest

from procparser.models import (
    NetDevPolicy,
    NetworkStats,
    ProcessStats,
    ProcessStatus,
    StatusCode,
    SystemStats,
)
from procparser.parser import (
    LOOPBACK_INTERFACE,
    ProcParser,
    join_cmdline,
    parse_key_value_lines,
    split_pid_stat_line,
    sum_net_dev_lines,
)
from procparser.validation import ProcFormatError

STAT_TAIL = (
    "S 1 123 123 0 -1 1077936384 1799 0 55 0 8 23 0 0 20 0 13 0 14329 "
    "114384896 2577 18446744073709551615 4194304 7917252"
)

NET_DEV_HEADER = (
    "Inter-|   Receive                                                |  Transmit\n"
    " face |bytes    packets errs drop fifo frame compressed multicast|"
    "bytes    packets errs drop fifo colls carrier compressed\n"
)


def write_pid_file(proc_root: Path, pid: int, name: str, content) -> None:
    path = proc_root / str(pid) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)


@pytest.mark.unit
class TestPidStatName:
    """The process name is delimited by the first '(' and the last ')'."""

    def test_name_with_embedded_paren(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", f"789 (a) b) {STAT_TAIL}\n")

        stats = ProcessStats()
        status = parser.parse_proc_pid_stat(789, stats)

        assert status.is_ok
        assert stats.process_name == "a) b"
        assert stats.num_threads == 13
        assert stats.vsize_bytes == 114384896

    def test_name_with_spaces_and_parens(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", f"789 ((sd-pam) worker) {STAT_TAIL}\n")

        stats = ProcessStats()
        assert parser.parse_proc_pid_stat(789, stats)
        assert stats.process_name == "(sd-pam) worker"
        assert parser.get_pid_start_time_ticks(789) == 14329

    def test_empty_name(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", f"789 () {STAT_TAIL}\n")

        stats = ProcessStats()
        assert parser.parse_proc_pid_stat(789, stats)
        assert stats.process_name == ""

    def test_name_with_newline(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", f"789 (ib\nazel) {STAT_TAIL}\n")

        stats = ProcessStats()
        status = parser.parse_proc_pid_stat(789, stats)

        assert status.is_ok
        assert stats.process_name == "ib\nazel"
        assert stats.num_threads == 13
        assert parser.get_pid_start_time_ticks(789) == 14329

    def test_split_pid_stat_line(self):
        name, fields = split_pid_stat_line("1 (x (y)) R 0 1", Path("stat"))

        assert name == "x (y)"
        assert fields == ["R", "0", "1"]

    def test_missing_parens_is_format_error(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", "789 ibazel S 1 123\n")

        status = parser.parse_proc_pid_stat(789, ProcessStats())

        assert status.code is StatusCode.FORMAT_ERROR
        assert parser.get_pid_start_time_ticks(789) == 0

    def test_truncated_stat_is_format_error(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", "789 (ibazel) S 1 123 123 0 -1\n")

        status = parser.parse_proc_pid_stat(789, ProcessStats())

        assert status.code is StatusCode.FORMAT_ERROR
        assert "fields" in status.message

    def test_non_numeric_field_is_format_error(self, parser, proc_root):
        write_pid_file(proc_root, 789, "stat", f"789 (ibazel) {STAT_TAIL.replace('1799', 'x')}\n")

        status = parser.parse_proc_pid_stat(789, ProcessStats())

        assert status.code is StatusCode.FORMAT_ERROR
        assert "minflt" in status.message


@pytest.mark.unit
class TestVanishedProcess:
    """A process that is gone yields NOT_FOUND, never an exception."""

    def test_every_operation_reports_not_found(self, parser):
        missing_pid = 99999

        assert parser.parse_proc_pid_stat(missing_pid, ProcessStats()).is_not_found
        assert parser.parse_proc_pid_stat_io(missing_pid, ProcessStats()).is_not_found
        assert parser.parse_proc_pid_net_dev(missing_pid, NetworkStats()).is_not_found
        assert parser.parse_proc_pid_status(missing_pid, ProcessStatus()).is_not_found

        status, target = parser.read_proc_pid_fd_link(missing_pid, 0)
        assert status.is_not_found
        assert target == ""

        status, exe = parser.get_exe_path(missing_pid)
        assert status.is_not_found
        assert exe is None

    def test_value_operations_fall_back(self, parser):
        assert parser.get_pid_start_time_ticks(99999) == 0
        assert parser.get_pid_start_time_ns(99999) == 0
        assert parser.get_pid_cmdline(99999) == ""

    def test_not_found_status_is_falsy(self, parser):
        status = parser.parse_proc_pid_stat(99999, ProcessStats())

        assert not status
        assert status.path is not None
        assert "NOT_FOUND" in str(status)

    def test_missing_system_files(self, tmp_path, mock_sysconfig):
        mock_sysconfig.proc_path.return_value = tmp_path
        parser = ProcParser(mock_sysconfig)

        assert parser.parse_proc_stat(SystemStats()).is_not_found
        assert parser.parse_proc_meminfo(SystemStats()).is_not_found


@pytest.mark.unit
class TestCmdline:
    """Test cases for cmdline joining."""

    def test_empty_cmdline(self, parser, proc_root):
        write_pid_file(proc_root, 789, "cmdline", b"")
        assert parser.get_pid_cmdline(789) == ""

    def test_only_nul(self):
        assert join_cmdline(b"\0") == ""

    def test_argument_with_spaces_is_verbatim(self):
        assert join_cmdline(b"sh\0-c\0echo hello  world\0") == "sh -c echo hello  world"

    def test_no_trailing_nul(self):
        assert join_cmdline(b"nginx: master process") == "nginx: master process"

    def test_invalid_utf8_is_replaced(self):
        assert join_cmdline(b"prog\0\xff\0") == "prog �"


@pytest.mark.unit
class TestKeyValueFiles:
    """Test cases for the io, meminfo and status tables."""

    def test_io_missing_key_is_format_error(self, parser, proc_root):
        write_pid_file(proc_root, 789, "io", "rchar: 1\nwchar: 2\nread_bytes: 3\n")

        status = parser.parse_proc_pid_stat_io(789, ProcessStats())

        assert status.code is StatusCode.FORMAT_ERROR
        assert "write_bytes" in status.message

    def test_io_unknown_keys_ignored(self, parser, proc_root):
        write_pid_file(
            proc_root, 789, "io",
            "rchar: 1\nfuture_key: abc\nwchar: 2\nread_bytes: 3\nwrite_bytes: 4\n",
        )

        stats = ProcessStats()
        assert parser.parse_proc_pid_stat_io(789, stats)
        assert (stats.rchar_bytes, stats.wchar_bytes, stats.read_bytes, stats.write_bytes) == (1, 2, 3, 4)

    def test_io_format_error_leaves_record_untouched(self, parser, proc_root):
        write_pid_file(proc_root, 789, "io", "rchar: 1\nwchar: x\nread_bytes: 3\nwrite_bytes: 4\n")

        stats = ProcessStats()
        status = parser.parse_proc_pid_stat_io(789, stats)

        assert status.is_format_error
        assert stats.rchar_bytes == 0

    @pytest.mark.parametrize("token", ["+5", "-1", "1_000"])
    def test_io_counter_must_be_unsigned_decimal(self, parser, proc_root, token):
        write_pid_file(
            proc_root, 789, "io",
            f"rchar: {token}\nwchar: 2\nread_bytes: 3\nwrite_bytes: 4\n",
        )

        status = parser.parse_proc_pid_stat_io(789, ProcessStats())

        assert status.is_format_error

    def test_meminfo_missing_key_is_format_error(self, parser, proc_root):
        lines = (proc_root / "meminfo").read_text().splitlines()
        (proc_root / "meminfo").write_text(
            "\n".join(line for line in lines if not line.startswith("MemAvailable")) + "\n"
        )

        status = parser.parse_proc_meminfo(SystemStats())

        assert status.is_format_error
        assert "MemAvailable" in status.message

    def test_meminfo_active_not_confused_with_active_anon(self, parser):
        stats = SystemStats()
        assert parser.parse_proc_meminfo(stats)
        assert stats.mem_active_bytes == 27723168 * 1024

    def test_status_of_kernel_thread(self, parser, proc_root):
        write_pid_file(
            proc_root, 2, "status",
            "Name:\tkthreadd\nState:\tS (sleeping)\nThreads:\t1\n"
            "voluntary_ctxt_switches:\t512\nnonvoluntary_ctxt_switches:\t3\n",
        )

        record = ProcessStatus()
        assert parser.parse_proc_pid_status(2, record)
        assert record.vm_rss_bytes == 0
        assert record.voluntary_ctxt_switches == 512

    def test_parse_key_value_lines(self):
        table = parse_key_value_lines(["MemTotal:  10 kB", "garbage", "Name:\tfoo: bar"])

        assert table["MemTotal"] == ["10", "kB"]
        assert table["Name"] == ["foo:", "bar"]
        assert "garbage" not in table


@pytest.mark.unit
class TestProcStat:
    """Test cases for the host-wide cpu line."""

    def test_missing_cpu_line(self, parser, proc_root):
        (proc_root / "stat").write_text("cpu0 1 2 3 4 5 6 7 8\nctxt 10\n")

        status = parser.parse_proc_stat(SystemStats())

        assert status.is_format_error

    def test_short_cpu_line(self, parser, proc_root):
        (proc_root / "stat").write_text("cpu  1 2 3 4\n")

        assert parser.parse_proc_stat(SystemStats()).is_format_error

    def test_cpu_line_without_steal(self, parser, proc_root):
        (proc_root / "stat").write_text("cpu  10 0 20 500 0 5 5\n")

        stats = SystemStats()
        assert parser.parse_proc_stat(stats)
        assert stats.cpu_utime_ns == 10 * 100
        assert stats.cpu_ktime_ns == 30 * 100


@pytest.mark.unit
class TestNetDevPolicy:
    """The loopback exclusion is a named, configurable policy."""

    def test_loopback_constant(self):
        assert LOOPBACK_INTERFACE == "lo"

    def test_including_loopback_changes_sum(self, mock_sysconfig):
        parser = ProcParser(mock_sysconfig, net_dev_policy=NetDevPolicy(exclude_loopback=False))

        stats = NetworkStats()
        assert parser.parse_proc_pid_net_dev(123, stats)

        assert stats.rx_bytes == 54504114 + 961324
        assert stats.rx_packets == 65296 + 8807
        assert stats.tx_bytes == 4258632 + 961324
        assert stats.tx_packets == 39739 + 8807

    def test_extra_excluded_interfaces(self, mock_sysconfig):
        policy = NetDevPolicy(exclude_loopback=True, excluded_interfaces=("eth1",))
        parser = ProcParser(mock_sysconfig, net_dev_policy=policy)

        stats = NetworkStats()
        assert parser.parse_proc_pid_net_dev(123, stats)

        assert stats.rx_bytes == 54000000
        assert stats.tx_packets == 39500

    def test_sum_matches_per_interface_fields(self):
        body = (
            "  eth0: 10 1 2 3 0 0 0 0 20 4 5 6 0 0 0 0\n"
            "  eth1: 30 7 8 9 0 0 0 0 40 10 11 12 0 0 0 0\n"
            "    lo: 99 99 99 99 0 0 0 0 99 99 99 99 0 0 0 0\n"
        )
        totals = sum_net_dev_lines((NET_DEV_HEADER + body).splitlines(), NetDevPolicy(), Path("dev"))

        assert totals == NetworkStats(
            rx_bytes=40, rx_packets=8, rx_errs=10, rx_drops=12,
            tx_bytes=60, tx_packets=14, tx_errs=16, tx_drops=18,
        )

    def test_counters_glued_to_colon(self):
        body = "  eth0:123 1 0 0 0 0 0 0 456 2 0 0 0 0 0 0\n"
        totals = sum_net_dev_lines((NET_DEV_HEADER + body).splitlines(), NetDevPolicy(), Path("dev"))

        assert totals.rx_bytes == 123
        assert totals.tx_bytes == 456

    def test_only_loopback_yields_zero(self):
        body = "    lo: 5 5 0 0 0 0 0 0 5 5 0 0 0 0 0 0\n"
        totals = sum_net_dev_lines((NET_DEV_HEADER + body).splitlines(), NetDevPolicy(), Path("dev"))

        assert totals == NetworkStats()

    def test_short_interface_line_is_format_error(self, parser, proc_root):
        write_pid_file(proc_root, 123, "net/dev", NET_DEV_HEADER + "  eth0: 1 2 3\n")

        status = parser.parse_proc_pid_net_dev(123, NetworkStats())

        assert status.is_format_error
        assert "eth0" in status.message

    def test_missing_header_is_format_error(self):
        with pytest.raises(ProcFormatError):
            sum_net_dev_lines(["eth0: 1"], NetDevPolicy(), Path("dev"))

    def test_line_without_colon_is_format_error(self):
        with pytest.raises(ProcFormatError):
            sum_net_dev_lines((NET_DEV_HEADER + "eth0 1 2 3\n").splitlines(), NetDevPolicy(), Path("dev"))
