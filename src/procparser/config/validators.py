"""
Configuration validation utilities.

This module turns the raw TOML sections into validated configuration
models, naming the offending key whenever a value is rejected.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import (
    AppConfig,
    LoggingConfig,
    NetDevPolicy,
    ParserConfig,
    SamplerConfig,
)
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _require_table(data: Any, field_name: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(
            f"{field_name} must be a table", field_name=field_name, value=data
        )
    return data


def validate_net_dev_policy(net_dev_data: Dict[str, Any]) -> NetDevPolicy:
    """
    Validate the `[parser.net_dev]` section.

    Raises:
        ValidationError: If validation fails
    """
    net_dev_data = _require_table(net_dev_data, "parser.net_dev")

    exclude_loopback = net_dev_data.get("exclude_loopback", True)
    if not isinstance(exclude_loopback, bool):
        raise ValidationError(
            "parser.net_dev.exclude_loopback must be a boolean",
            field_name="parser.net_dev.exclude_loopback",
            value=exclude_loopback,
        )

    excluded = net_dev_data.get("excluded_interfaces", [])
    if not isinstance(excluded, list) or not all(
        isinstance(name, str) and name.strip() for name in excluded
    ):
        raise ValidationError(
            "parser.net_dev.excluded_interfaces must be a list of interface names",
            field_name="parser.net_dev.excluded_interfaces",
            value=excluded,
        )

    return NetDevPolicy(
        exclude_loopback=exclude_loopback,
        excluded_interfaces=tuple(name.strip() for name in excluded),
    )


def validate_parser_config(parser_data: Dict[str, Any]) -> ParserConfig:
    """
    Validate the `[parser]` section.

    The proc root is not required to exist at load time: containers commonly
    mount the host's /proc after the configuration is read.

    Raises:
        ValidationError: If validation fails
    """
    parser_data = _require_table(parser_data, "parser")

    proc_root = parser_data.get("proc_root", "/proc")
    if not isinstance(proc_root, str) or not proc_root.strip():
        raise ValidationError(
            "parser.proc_root must be a non-empty string",
            field_name="parser.proc_root",
            value=proc_root,
        )

    net_dev = validate_net_dev_policy(parser_data.get("net_dev", {}))

    return ParserConfig(proc_root=Path(proc_root), net_dev=net_dev)


def validate_sampler_config(sampler_data: Dict[str, Any]) -> SamplerConfig:
    """
    Validate the `[sampler]` section.

    Raises:
        ValidationError: If validation fails
    """
    sampler_data = _require_table(sampler_data, "sampler")

    max_workers = validate_positive_integer(
        sampler_data.get("max_workers", 4),
        min_value=1,
        max_value=256,
        field_name="sampler.max_workers",
    )

    thread_name_prefix = sampler_data.get("thread_name_prefix", "ProcSampler")
    if not isinstance(thread_name_prefix, str) or not thread_name_prefix.strip():
        raise ValidationError(
            "sampler.thread_name_prefix must be a non-empty string",
            field_name="sampler.thread_name_prefix",
            value=thread_name_prefix,
        )

    return SamplerConfig(
        max_workers=max_workers,
        thread_name_prefix=thread_name_prefix,
    )


def validate_logging_config(logging_data: Dict[str, Any]) -> LoggingConfig:
    """
    Validate the `[logging]` section.

    Raises:
        ValidationError: If validation fails
    """
    logging_data = _require_table(logging_data, "logging")

    level = validate_enum_choice(
        logging_data.get("level", "INFO"),
        valid_choices=LOG_LEVELS,
        field_name="logging.level",
        case_sensitive=False,
    )
    return LoggingConfig(level=level)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate a whole parsed config.toml document.

    Missing sections fall back to their defaults.

    Raises:
        ValidationError: If any section fails validation
    """
    app_config = AppConfig(
        parser=validate_parser_config(config_data.get("parser", {})),
        sampler=validate_sampler_config(config_data.get("sampler", {})),
        logging=validate_logging_config(config_data.get("logging", {})),
    )
    logger.debug(f"Validated configuration: {app_config}")
    return app_config
