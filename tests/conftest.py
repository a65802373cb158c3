import logging

import pytest

# Excerpt of `spike -l --log-commits` output for a short store sequence
SPIKE_TRACE = """\
core   0: 0x0000000000001000 (0x00000297) auipc   t0, 0x0
core   0: 3 0x0000000000001000 (0x00000297) x5  0x0000000000001000
core   0: 0x0000000040000000 (0x00001537) lui     a0, 0x1
core   0: 3 0x0000000040000000 (0x00001537) x10 0x0000000000001000
core   0: 3 0x0000000040000004 (0x05500593) x11 0x0000000000000055
core   0: 3 0x0000000040000008 (0x00b53023) mem 0x0000000040001000 0x0000000000000055
core   0: 3 0x000000004000000c (0x00053283) x5  0x0000000000000055 mem 0x0000000040001000
core   0: 3 0x0000000040000010 (0x00100613) x12 0x0000000000000001
core   0: 3 0x0000000040000014 (0x00c52423) mem 0x0000000040001008 0x00000001
core   0: 3 0x0000000040000018 (0x00b50823) mem 0x0000000040001010 0x55
core   0: 3 0x000000004000001c (0x0000006f) x0  0x0000000040000020
"""

SPIKE_TRACE_VALUES_64 = [
    "0000000000000055",
    "0000000000000001",
    "0000000000000055",
]


@pytest.fixture
def trace_file(tmp_path):
    def _write(text=SPIKE_TRACE, name="spike"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No RVGOLD_* or toolchain variables from the caller's shell, cwd in tmp."""
    for name in ("RVGOLD_BUILD_DIR", "RVGOLD_TRACE", "RVGOLD_OUTPUT", "RVGOLD_XLEN",
                 "RVGOLD_REGION", "RVGOLD_FORMAT", "RVGOLD_ISA", "RVGOLD_TESTS_DIR",
                 "RVGOLD_LOG_DIR", "RVGOLD_SPIKE_TIMEOUT", "RVGOLD_VERBOSE",
                 "RISCV64_GCC", "RISCV64_OBJCOPY", "RISCV64_NM", "RISCV64_OBJDUMP", "SPIKE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_rvgold_logger():
    yield
    logger = logging.getLogger("rvgold")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
