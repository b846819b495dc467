"""
The /proc parser and its stateless format helpers.
"""

from .proc_parser import (
    LOOPBACK_INTERFACE,
    ProcParser,
    join_cmdline,
    parse_key_value_lines,
    split_pid_stat_line,
    sum_net_dev_lines,
)

__all__ = [
    "LOOPBACK_INTERFACE",
    "ProcParser",
    "join_cmdline",
    "parse_key_value_lines",
    "split_pid_stat_line",
    "sum_net_dev_lines",
]
