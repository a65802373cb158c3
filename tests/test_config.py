"""
Tests for configuration objects and their environment overrides.
"""

from pathlib import Path

import pytest

from rvgold.config import ExtractConfig, ToolchainConfig, parse_region, xlen_from_isa
from rvgold.errors import ConfigError
from rvgold.log import verbosity_from_env


class TestExtractConfig:

    def test_defaults(self):
        config = ExtractConfig()
        assert config.trace_path == Path("build/spike")
        assert config.output_path == Path("build/test_data")
        assert config.xlen == 64
        assert config.width == 16
        assert config.region is None
        assert config.region_symbols == ("begin_signature", "end_signature")

    def test_bad_values(self):
        with pytest.raises(ConfigError):
            ExtractConfig(xlen=128)
        with pytest.raises(ConfigError):
            ExtractConfig(fmt="binary")
        with pytest.raises(ConfigError):
            ExtractConfig(region=(0x2000, 0x1000))

    def test_from_env(self):
        env = {
            "RVGOLD_BUILD_DIR": "out",
            "RVGOLD_XLEN": "32",
            "RVGOLD_REGION": "40001000:40002000",
            "RVGOLD_FORMAT": "addressed",
        }
        config = ExtractConfig.from_env(env)
        assert config.trace_path == Path("out/spike")
        assert config.output_path == Path("out/test_data")
        assert config.symbols_path == Path("out/spike.sym")
        assert config.xlen == 32
        assert config.region == (0x40001000, 0x40002000)
        assert config.fmt == "addressed"

    def test_overrides_beat_env(self):
        config = ExtractConfig.from_env({"RVGOLD_XLEN": "32"}, xlen=64, output_path="golden.txt", region=None)
        assert config.xlen == 64
        assert config.output_path == Path("golden.txt")

    def test_explicit_build_dir_and_default_xlen(self):
        config = ExtractConfig.from_env({"RVGOLD_BUILD_DIR": "out"}, build_dir="build/beq", default_xlen=32)
        assert config.trace_path == Path("build/beq/spike")
        assert config.symbols_path == Path("build/beq/spike.sym")
        assert config.xlen == 32
        # RVGOLD_XLEN beats the ISA-derived default
        assert ExtractConfig.from_env({"RVGOLD_XLEN": "64"}, default_xlen=32).xlen == 64

    def test_bad_env(self):
        with pytest.raises(ConfigError):
            ExtractConfig.from_env({"RVGOLD_XLEN": "sixty-four"})


class TestToolchainConfig:

    def test_defaults(self):
        config = ToolchainConfig()
        assert config.gcc == "riscv64-unknown-elf-gcc"
        assert config.spike == "spike"
        assert config.include_dir == Path("riscv-tests/include")
        assert config.rtl_linker_script == Path("linker/rtl.ld")
        assert config.spike_linker_script == Path("linker/spike.ld")
        assert config.reset_pc == 0x40000000
        assert config.xlen == 64

    def test_from_env_uses_tool_variables(self):
        env = {
            "RISCV64_GCC": "/opt/riscv/bin/riscv64-unknown-elf-gcc",
            "SPIKE": "/opt/riscv/bin/spike",
            "RVGOLD_ISA": "rv32imac",
            "RVGOLD_SPIKE_TIMEOUT": "30",
        }
        config = ToolchainConfig.from_env(env, build_dir="b")
        assert config.gcc == "/opt/riscv/bin/riscv64-unknown-elf-gcc"
        assert config.spike == "/opt/riscv/bin/spike"
        assert config.xlen == 32
        assert config.spike_timeout == 30.0
        assert config.build_dir == Path("b")

    def test_with_build_dir(self):
        config = ToolchainConfig().with_build_dir("build/beq")
        assert config.build_dir == Path("build/beq")
        assert config.tests_dir == Path("riscv-tests")

    def test_bad_isa(self):
        with pytest.raises(ConfigError):
            ToolchainConfig(isa="x86_64")


class TestHelpers:

    @pytest.mark.parametrize("isa,xlen", [("rv32i", 32), ("RV64GC", 64), ("rv64g", 64)])
    def test_xlen_from_isa(self, isa, xlen):
        assert xlen_from_isa(isa) == xlen

    def test_parse_region(self):
        assert parse_region("0x40001000:0x40001100") == (0x40001000, 0x40001100)

    @pytest.mark.parametrize("text", ["40001000", "zz:40001000", "40001000:40001000"])
    def test_parse_region_rejects(self, text):
        with pytest.raises(ConfigError):
            parse_region(text)

    def test_verbosity_from_env(self):
        assert verbosity_from_env({}) == 0
        assert verbosity_from_env({"RVGOLD_VERBOSE": "2"}) == 2
        with pytest.raises(ConfigError):
            verbosity_from_env({"RVGOLD_VERBOSE": "loud"})
