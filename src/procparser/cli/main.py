"""
Command-line interface for procparser.

Subcommands:
    host            print host-wide CPU and memory figures
    pid PID [...]   print samples for the given processes
    all             sample every process listed under the proc root

Exit codes: 0 on success, 1 on configuration errors, 2 when every requested
PID vanished before it could be sampled.
"""

import argparse
import dataclasses
import json
import logging
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

import psutil

from ..collectors import ProcessSample, ProcSampler, SystemSample
from ..config import get_config, set_config_path
from ..models.config import AppConfig
from ..parser import ProcParser
from ..system import get_system_config
from ..validation import (
    SystemConfigError,
    ValidationError,
    handle_cli_error,
    validate_pid_list,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ALL_VANISHED = 2


def setup_logging(level: str) -> None:
    """Configure root logging; log records go to stderr so stdout stays parseable."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procparser",
        description="Read typed resource-usage records from the Linux /proc filesystem.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml. Built-in defaults are used when omitted and no default file exists.",
    )
    parser.add_argument(
        "--proc-root",
        type=Path,
        help="Directory to read instead of the configured proc root (e.g. a host /proc bind mount).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print records as JSON instead of text.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Override the configured log level (DEBUG, INFO, WARNING, ERROR).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("host", help="Print host-wide CPU and memory figures.")
    pid_parser = subparsers.add_parser("pid", help="Sample the given processes.")
    pid_parser.add_argument("pids", nargs="+", help="Process IDs to sample.")
    subparsers.add_parser("all", help="Sample every running process.")
    return parser


def load_app_config(config_path: Optional[Path]) -> AppConfig:
    """
    Load the application config, falling back to defaults when no file exists.

    An explicitly requested file that is missing is an error.
    """
    if config_path is not None:
        set_config_path(config_path)
        return get_config()
    try:
        return get_config()
    except FileNotFoundError:
        logger.info("No configuration file found, using built-in defaults")
        return AppConfig()


def _sample_to_dict(sample: ProcessSample) -> Dict[str, Any]:
    return {
        "pid": sample.pid,
        "start_time_ticks": sample.start_time_ticks,
        "cmdline": sample.cmdline,
        "stats": dataclasses.asdict(sample.stats),
        "network": dataclasses.asdict(sample.network),
        "statuses": {name: str(status) for name, status in sample.statuses.items()},
    }


def _system_to_dict(sample: SystemSample) -> Dict[str, Any]:
    return {
        "stats": dataclasses.asdict(sample.stats),
        "statuses": {name: str(status) for name, status in sample.statuses.items()},
    }


def _print_record(title: str, record: Any) -> None:
    print(title)
    for name, value in dataclasses.asdict(record).items():
        print(f"  {name:<24} {value}")


def print_system_sample(sample: SystemSample, as_json: bool) -> None:
    if as_json:
        print(json.dumps(_system_to_dict(sample), indent=2))
        return
    _print_record("host", sample.stats)


def print_process_samples(samples: List[ProcessSample], as_json: bool) -> None:
    if as_json:
        print(json.dumps([_sample_to_dict(sample) for sample in samples], indent=2))
        return
    for sample in samples:
        _print_record(f"pid {sample.pid} [{sample.cmdline or sample.stats.process_name}]", sample.stats)
        _print_record("  network", sample.network)
        failed = {name: status for name, status in sample.statuses.items() if not status}
        for name, status in failed.items():
            print(f"  ! {name}: {status}")


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Main command-line interface for procparser.

    Returns:
        Process exit code.
    """
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level or "INFO")

    try:
        app_config = load_app_config(args.config)
    except (FileNotFoundError, tomllib.TOMLDecodeError, ValidationError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=EXIT_CONFIG_ERROR,
            logger=logger,
        )

    if not args.log_level:
        setup_logging(app_config.logging.level)

    proc_root = args.proc_root or app_config.parser.proc_root
    try:
        sysconfig = get_system_config(proc_root)
        parser = ProcParser(sysconfig, net_dev_policy=app_config.parser.net_dev)
    except SystemConfigError as e:
        handle_cli_error(
            error=e,
            context="system configuration",
            exit_code=EXIT_CONFIG_ERROR,
            logger=logger,
        )

    sampler = ProcSampler(parser, config=app_config.sampler)

    if args.command == "host":
        print_system_sample(sampler.sample_system(), args.json)
        return EXIT_OK

    if args.command == "pid":
        try:
            pids = validate_pid_list(args.pids, field_name="pids")
        except ValidationError as e:
            handle_cli_error(
                error=e,
                context="pid argument validation",
                exit_code=EXIT_CONFIG_ERROR,
                logger=logger,
            )
    else:
        # Enumerate from the same procfs mount the parser reads
        psutil.PROCFS_PATH = str(parser.proc_root)
        pids = psutil.pids()

    samples = sampler.sample(pids)
    print_process_samples(samples, args.json)
    logger.debug(f"Sampler counters: {sampler.get_stats()}")

    if args.command == "pid" and not samples:
        logger.warning("None of the requested processes could be sampled")
        return EXIT_ALL_VANISHED
    return EXIT_OK


def main() -> None:
    sys.exit(main_cli())


if __name__ == "__main__":
    main()
