"""
Configuration data models.

This module contains the configuration structures loaded from `config.toml`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


@dataclass(frozen=True)
class NetDevPolicy:
    """
    Which interfaces are left out of the `net/dev` aggregation.

    Loopback traffic never leaves the host, so it is excluded from
    cross-process network telemetry unless `exclude_loopback` is turned off.
    """

    exclude_loopback: bool = True
    # Additional interface names to skip, e.g. ("docker0",).
    excluded_interfaces: Tuple[str, ...] = ()


@dataclass
class ParserConfig:
    """
    Configuration for the /proc parser, loaded from the `[parser]` section.
    """

    # Base directory standing in for the kernel's /proc mount.
    proc_root: Path = Path("/proc")
    net_dev: NetDevPolicy = field(default_factory=NetDevPolicy)


@dataclass
class SamplerConfig:
    """
    Configuration for the thread-pool sampler, loaded from the `[sampler]` section.
    """

    max_workers: int = 4
    thread_name_prefix: str = "ProcSampler"


@dataclass
class LoggingConfig:
    """
    Logging settings, loaded from the `[logging]` section.
    """

    level: str = "INFO"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    parser: ParserConfig = field(default_factory=ParserConfig)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
