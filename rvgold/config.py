"""
Configuration objects for the extractor and the toolchain pipeline.

Values come from the dataclass defaults, then from environment variables
(the same variable names the old Makefile honoured for the tools), then from
whatever the caller overrides.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from rvgold.errors import ConfigError

SUPPORTED_XLEN = (32, 64)
OUTPUT_FORMATS = ("values", "addressed")

DEFAULT_REGION_SYMBOLS = ("begin_signature", "end_signature")

# D-extension stores are 64 bits wide whatever the XLEN
MAX_STORE_BITS = 64

# Spike memory map used by the spike.ld link layout
DEFAULT_RESET_PC = 0x40000000
DEFAULT_MEM_BASE = 0x40000000
DEFAULT_MEM_SIZE = 0x8000000


def hex_digits(xlen: int) -> int:
    """Number of hex digits in one word of the given width."""
    return xlen // 4


def store_digits(xlen: int) -> int:
    """Widest store payload on an XLEN target. ``fsd`` stores 64 bits on RV32D."""
    return hex_digits(max(xlen, MAX_STORE_BITS))


def check_xlen(xlen) -> int:
    try:
        xlen = int(xlen)
    except (TypeError, ValueError):
        raise ConfigError(f"XLEN must be 32 or 64, got {xlen!r}") from None
    if xlen not in SUPPORTED_XLEN:
        raise ConfigError(f"XLEN must be 32 or 64, got {xlen}")
    return xlen


def xlen_from_isa(isa: str) -> int:
    """rv32* -> 32, rv64* -> 64."""
    isa = isa.strip().lower()
    if isa.startswith("rv32"):
        return 32
    if isa.startswith("rv64"):
        return 64
    raise ConfigError(f"Cannot derive XLEN from ISA string {isa!r}")


def parse_region(text: str) -> Tuple[int, int]:
    """Parse a ``start:end`` hex range into a half-open (start, end) tuple."""
    if ":" not in text:
        raise ConfigError(f"Region must look like START:END, got {text!r}")
    start_s, end_s = text.split(":", 1)
    try:
        start = int(start_s.strip(), 16)
        end = int(end_s.strip(), 16)
    except ValueError:
        raise ConfigError(f"Region bounds must be hexadecimal, got {text!r}") from None
    if end <= start:
        raise ConfigError(f"Region end 0x{end:x} must be above start 0x{start:x}")
    return start, end


def _env_int(env, name, default, base=10):
    value = env.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value, base)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class ExtractConfig:
    """Where the extractor reads, where it writes, and how it renders."""

    trace_path: Path = Path("build/spike")
    output_path: Path = Path("build/test_data")
    xlen: int = 64
    region: Optional[Tuple[int, int]] = None
    symbols_path: Optional[Path] = Path("build/spike.sym")
    region_symbols: Tuple[str, str] = DEFAULT_REGION_SYMBOLS
    fmt: str = "values"

    def __post_init__(self):
        self.trace_path = Path(self.trace_path)
        self.output_path = Path(self.output_path)
        if self.symbols_path is not None:
            self.symbols_path = Path(self.symbols_path)
        self.xlen = check_xlen(self.xlen)
        if self.fmt not in OUTPUT_FORMATS:
            raise ConfigError(f"Unknown output format {self.fmt!r}; choose from {', '.join(OUTPUT_FORMATS)}")
        if self.region is not None:
            start, end = self.region
            if end <= start:
                raise ConfigError(f"Region end 0x{end:x} must be above start 0x{start:x}")

    @property
    def width(self) -> int:
        return hex_digits(self.xlen)

    @classmethod
    def for_build_dir(cls, build_dir, **overrides):
        build_dir = Path(build_dir)
        values = dict(
            trace_path=build_dir / "spike",
            output_path=build_dir / "test_data",
            symbols_path=build_dir / "spike.sym",
        )
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls, env=None, build_dir=None, default_xlen=64, **overrides):
        """Defaults, then RVGOLD_* variables, then non-None ``overrides``.

        An explicit ``build_dir`` wins over RVGOLD_BUILD_DIR. ``default_xlen``
        applies when neither RVGOLD_XLEN nor an ``xlen`` override is given.
        """
        env = os.environ if env is None else env
        build_dir = Path(build_dir or env.get("RVGOLD_BUILD_DIR", "build"))
        values = dict(
            trace_path=Path(env.get("RVGOLD_TRACE", build_dir / "spike")),
            output_path=Path(env.get("RVGOLD_OUTPUT", build_dir / "test_data")),
            symbols_path=build_dir / "spike.sym",
            xlen=_env_int(env, "RVGOLD_XLEN", default_xlen),
            fmt=env.get("RVGOLD_FORMAT", "values"),
        )
        if env.get("RVGOLD_REGION"):
            values["region"] = parse_region(env["RVGOLD_REGION"])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class ToolchainConfig:
    """External tools and the on-disk layout of a test build."""

    gcc: str = "riscv64-unknown-elf-gcc"
    objcopy: str = "riscv64-unknown-elf-objcopy"
    nm: str = "riscv64-unknown-elf-nm"
    objdump: str = "riscv64-unknown-elf-objdump"
    spike: str = "spike"
    isa: str = "rv64g"
    reset_pc: int = DEFAULT_RESET_PC
    mem_base: int = DEFAULT_MEM_BASE
    mem_size: int = DEFAULT_MEM_SIZE
    tests_dir: Path = Path("riscv-tests")
    include_dir: Optional[Path] = None
    linker_dir: Path = Path("linker")
    build_dir: Path = Path("build")
    log_dir: Path = Path("log")
    spike_timeout: Optional[float] = None
    extra_cflags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        self.tests_dir = Path(self.tests_dir)
        self.include_dir = Path(self.include_dir) if self.include_dir is not None else self.tests_dir / "include"
        self.linker_dir = Path(self.linker_dir)
        self.build_dir = Path(self.build_dir)
        self.log_dir = Path(self.log_dir)
        # raises ConfigError early for nonsense ISA strings
        xlen_from_isa(self.isa)

    @property
    def xlen(self) -> int:
        return xlen_from_isa(self.isa)

    @property
    def rtl_linker_script(self) -> Path:
        return self.linker_dir / "rtl.ld"

    @property
    def spike_linker_script(self) -> Path:
        return self.linker_dir / "spike.ld"

    def with_build_dir(self, build_dir):
        return replace(self, build_dir=Path(build_dir))

    @classmethod
    def from_env(cls, env=None, **overrides):
        env = os.environ if env is None else env
        values = {}
        for attr, name in (
            ("gcc", "RISCV64_GCC"),
            ("objcopy", "RISCV64_OBJCOPY"),
            ("nm", "RISCV64_NM"),
            ("objdump", "RISCV64_OBJDUMP"),
            ("spike", "SPIKE"),
            ("isa", "RVGOLD_ISA"),
            ("tests_dir", "RVGOLD_TESTS_DIR"),
            ("build_dir", "RVGOLD_BUILD_DIR"),
            ("log_dir", "RVGOLD_LOG_DIR"),
        ):
            if env.get(name):
                values[attr] = env[name]
        timeout = env.get("RVGOLD_SPIKE_TIMEOUT")
        if timeout:
            try:
                values["spike_timeout"] = float(timeout)
            except ValueError:
                raise ConfigError(f"RVGOLD_SPIKE_TIMEOUT must be a number, got {timeout!r}") from None
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
