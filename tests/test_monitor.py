"""
Tests for the RTL write-port monitor, without a simulator.
"""

from types import SimpleNamespace

import pytest

from rvgold.monitor import MemWriteMonitor, lane_value
from rvgold.trace import MemWrite


class Signal:
    def __init__(self, value, name=""):
        self.value = value
        self._name = name


class Unresolved:
    """A signal value with X/Z bits."""

    def __int__(self):
        raise ValueError("Unresolvable bit in binary string: 'x'")


def make_dut(**signals):
    return SimpleNamespace(**{name: Signal(value, name) for name, value in signals.items()})


class TestLaneValue:

    def test_full_word_without_strobes(self):
        assert lane_value(0x1_0000_0055, None, 32) == (0, 0x55)

    def test_byte_lane(self):
        assert lane_value(0x0000_5500, 0b0010, 32) == (1, 0x55)

    def test_halfword(self):
        assert lane_value(0xBEEF_0000, 0b1100, 32) == (2, 0xBEEF)

    def test_doubleword(self):
        assert lane_value(0x0123_4567_89AB_CDEF, 0xFF, 64) == (0, 0x0123_4567_89AB_CDEF)

    def test_no_strobes(self):
        assert lane_value(0xFFFF_FFFF, 0, 32) == (0, 0)


class TestMonitor:

    def test_binds_cpu_prefixed_signals(self):
        dut = make_dut(cpu_dmem_wvalid=1, dmem_addr=0x40001000, dmem_wdata=0x55)
        monitor = MemWriteMonitor(dut, clk=None)
        assert monitor.wvalid._name == "cpu_dmem_wvalid"
        assert monitor.wstrb is None
        assert monitor.sample() == MemWrite(0x40001000, 0x55, 0)

    def test_nested_signals(self):
        core = make_dut(dmem_we=1, dmem_waddr=0x40001008, dmem_wdata=0x1, dmem_wstrb=0xF)
        dut = SimpleNamespace(core=core)
        monitor = MemWriteMonitor(dut, clk=None)
        assert monitor.sample().address == 0x40001008

    def test_strobed_byte_store(self):
        dut = make_dut(dmem_wvalid=1, dmem_addr=0x40001010, dmem_wdata=0x0055_0000, dmem_wstrb=0b0100)
        write = MemWriteMonitor(dut, clk=None).sample()
        assert write.address == 0x40001012
        assert write.value == 0x55

    def test_idle_port(self):
        dut = make_dut(dmem_wvalid=0, dmem_addr=0, dmem_wdata=0)
        assert MemWriteMonitor(dut, clk=None).sample() is None

    def test_unresolved_port(self):
        dut = make_dut(dmem_wvalid=1, dmem_addr=0x40001000, dmem_wdata=0)
        dut.dmem_wdata.value = Unresolved()
        assert MemWriteMonitor(dut, clk=None).sample() is None

    def test_region(self):
        dut = make_dut(dmem_wvalid=1, dmem_addr=0x40000ff8, dmem_wdata=0x7)
        monitor = MemWriteMonitor(dut, clk=None, region=(0x40001000, 0x40001100))
        assert monitor.sample() is None
        dut.dmem_addr.value = 0x40001000
        assert monitor.sample().value == 0x7

    def test_missing_port(self):
        with pytest.raises(AttributeError):
            MemWriteMonitor(make_dut(dmem_addr=0), clk=None)
