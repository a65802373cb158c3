from typing import List, Optional, Tuple

from rvgold.trace import MemWrite


def lane_value(wdata: int, wstrb: Optional[int], xlen: int) -> Tuple[int, int]:
    """Reduce a bus write to what Spike logs for the store.

    Spike records the stored value right-aligned at the store width, while the
    bus carries it in its byte lanes. Returns (byte offset, value).
    """
    nbytes = xlen // 8
    full = (1 << xlen) - 1
    if wstrb is None:
        return 0, wdata & full
    wstrb &= (1 << nbytes) - 1
    if wstrb == 0:
        return 0, 0
    low = (wstrb & -wstrb).bit_length() - 1
    high = wstrb.bit_length()
    width = (high - low) * 8
    return low, (wdata >> (low * 8)) & ((1 << width) - 1)


class MemWriteMonitor:
    """Record every data-memory write a DUT performs, in commit order."""

    def __init__(self, dut, clk, prefix: str = "dmem", xlen: int = 32, region=None):
        self.dut = dut
        self.clk = clk
        self.prefix = prefix.rstrip('_')
        self.xlen = xlen
        self.region = region
        self.writes: List[MemWrite] = []
        self.cycle = 0
        self._task = None

        def find_signal(*base_names, required=True):
            candidates = []
            for base_name in base_names:
                candidates += [
                    f"cpu_{self.prefix}_{base_name}",
                    f"{self.prefix}_{base_name}",
                    f"o_{self.prefix}_{base_name}",
                ]
            for name in candidates:
                try:
                    return getattr(dut, name)
                except AttributeError:
                    continue

            # One level down, for write ports that live inside a wrapper
            for attr in dir(dut):
                if attr.startswith('_'):
                    continue
                try:
                    child = getattr(dut, attr)
                except Exception:
                    continue
                for name in candidates:
                    try:
                        return getattr(child, name)
                    except Exception:
                        continue

            if required:
                raise AttributeError(f"No write-port signal found for {'/'.join(base_names)}; tried: {candidates} and nested attrs")
            return None

        self.wvalid = find_signal('wvalid', 'we')
        self.addr = find_signal('waddr', 'addr')
        self.wdata = find_signal('wdata')
        # byte strobes are optional, full-width writes without them
        self.wstrb = find_signal('wstrb', 'be', required=False)

        dut_log = getattr(dut, '_log', None)
        if dut_log is not None:
            names = {k: getattr(getattr(self, k), '_name', None) for k in ('wvalid', 'addr', 'wdata', 'wstrb')}
            dut_log.info(f"MemWriteMonitor bound signals: {names}")

    def start(self):
        import cocotb
        self._task = cocotb.start_soon(self._run())
        return self._task

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def sample(self) -> Optional[MemWrite]:
        """Read the port once. Returns the write seen this cycle, or None."""
        try:
            if int(self.wvalid.value) == 0:
                return None
            addr = int(self.addr.value)
            wdata = int(self.wdata.value)
            wstrb = int(self.wstrb.value) if self.wstrb is not None else None
        except ValueError:
            # X/Z on the port: nothing committed
            return None

        offset, value = lane_value(wdata, wstrb, self.xlen)
        write = MemWrite(addr + offset, value, self.cycle)
        if self.region is not None and not (self.region[0] <= write.address < self.region[1]):
            return None
        return write

    async def _run(self):
        from cocotb.triggers import RisingEdge, ReadOnly
        dut_log = getattr(self.dut, '_log', None)
        while True:
            await RisingEdge(self.clk)
            await ReadOnly()
            self.cycle += 1
            write = self.sample()
            if write is None:
                continue
            self.writes.append(write)
            if dut_log is not None:
                dut_log.debug(f"  [Cycle {self.cycle}] write #{len(self.writes) - 1}: "
                              f"addr=0x{write.address:08x} data=0x{write.value:x}")
