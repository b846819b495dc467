"""
Typed success/failure signal returned by the parser operations.

A telemetry loop sampling thousands of short-lived processes treats a
vanished process as routine control flow, so parse operations report their
outcome through a Status value instead of raising.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class StatusCode(Enum):
    """Outcome categories of a parse operation."""

    OK = "ok"
    # Path or fd absent: the process or fd went away. Routine, skip the PID.
    NOT_FOUND = "not_found"
    # Content present but the grammar is not what this parser expects.
    FORMAT_ERROR = "format_error"
    # SystemConfig missing or unusable. Fatal for the whole pass. ProcParser
    # raises SystemConfigError instead; substitutes may return this per call.
    CONFIG_ERROR = "config_error"
    # File present but unreadable for the current user.
    PERMISSION_DENIED = "permission_denied"
    # Any other OS-level read failure.
    IO_ERROR = "io_error"


@dataclass(frozen=True)
class Status:
    """Result of a single parser operation."""

    code: StatusCode = StatusCode.OK
    message: str = ""
    path: Any = None

    @property
    def is_ok(self) -> bool:
        return self.code is StatusCode.OK

    @property
    def is_not_found(self) -> bool:
        return self.code is StatusCode.NOT_FOUND

    @property
    def is_format_error(self) -> bool:
        return self.code is StatusCode.FORMAT_ERROR

    def __bool__(self) -> bool:
        return self.is_ok

    def __str__(self) -> str:
        if self.is_ok:
            return "OK"
        return f"{self.code.name}: {self.message}"

    @classmethod
    def ok(cls) -> "Status":
        return cls()

    @classmethod
    def not_found(cls, message: str, path: Any = None) -> "Status":
        return cls(StatusCode.NOT_FOUND, message, path)

    @classmethod
    def format_error(cls, message: str, path: Any = None) -> "Status":
        return cls(StatusCode.FORMAT_ERROR, message, path)

    @classmethod
    def config_error(cls, message: str) -> "Status":
        return cls(StatusCode.CONFIG_ERROR, message)

    @classmethod
    def permission_denied(cls, message: str, path: Any = None) -> "Status":
        return cls(StatusCode.PERMISSION_DENIED, message, path)

    @classmethod
    def io_error(cls, message: str, path: Any = None) -> "Status":
        return cls(StatusCode.IO_ERROR, message, path)
