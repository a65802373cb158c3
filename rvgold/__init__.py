"""
rvgold - expected memory-write data for RTL verification

Compiles RISC-V test programs, runs them on Spike with commit logging and
scrapes the commit log into a golden data file.
"""

from rvgold.errors import (
    RvgoldError,
    ParseError,
    MissingInputError,
    MissingTraceError,
    ConfigError,
    ToolError,
)
from rvgold.trace import MemWrite, parse_trace
from rvgold.extract import ExtractResult
from rvgold.config import ExtractConfig, ToolchainConfig

__version__ = "0.1.0"

__all__ = [
    "RvgoldError",
    "ParseError",
    "MissingInputError",
    "MissingTraceError",
    "ConfigError",
    "ToolError",
    "MemWrite",
    "parse_trace",
    "ExtractResult",
    "ExtractConfig",
    "ToolchainConfig",
]
