"""
Collection loops built on the /proc parser.
"""

from .sampler import (
    FormatErrorReporter,
    ProcessSample,
    ProcSampler,
    SystemSample,
)

__all__ = [
    "FormatErrorReporter",
    "ProcessSample",
    "ProcSampler",
    "SystemSample",
]
