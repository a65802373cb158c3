"""
Spike commit-log parsing.

With ``spike -l --log-commits`` every retired instruction produces a line like

    core   0: 3 0x0000000040000010 (0x00b53023) mem 0x0000000040001000 0x0000000000000055

A store has nothing between the raw instruction and ``mem``. Loads and AMOs
write a register first (``(0x...) x5 0x... mem 0x...``), so requiring ``)``
right before ``mem 0x`` keeps only memory writes.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from rvgold.config import check_xlen, hex_digits, store_digits
from rvgold.errors import ParseError

log = logging.getLogger(__name__)

MEM_WRITE_MARKER = re.compile(r"\)\s+mem\s+0x")
MEM_WRITE_FIELDS = re.compile(r"\)\s+mem\s+(?P<addr>\S+)(?:\s+(?P<value>\S+))?")
HEX_TOKEN = re.compile(r"(?:0[xX])?(?P<digits>[0-9a-fA-F]+)")


@dataclass(frozen=True)
class MemWrite:
    """One committed memory write, in execution order."""

    address: int
    value: int
    line_number: int = 0

    def format_value(self, xlen: int) -> str:
        # a 64-bit FP store on a 32-bit target keeps its full width
        width = hex_digits(xlen) if self.value >> xlen == 0 else store_digits(xlen)
        return f"{self.value:0{width}x}"

    def format_address(self, xlen: int) -> str:
        return f"{self.address:0{hex_digits(xlen)}x}"


def is_mem_write(line: str) -> bool:
    return MEM_WRITE_MARKER.search(line) is not None


def _parse_hex(token: Optional[str], max_digits: int) -> Optional[int]:
    if token is None:
        return None
    m = HEX_TOKEN.fullmatch(token)
    if not m:
        return None
    digits = m.group("digits").lstrip("0")
    if len(digits) > max_digits:
        return None
    return int(m.group("digits"), 16)


def parse_line(line: str, line_number: int, xlen: int = 64, source=None) -> Optional[MemWrite]:
    """Parse one trace line.

    Returns None for lines that are not memory writes. Raises ParseError for a
    memory-write line whose address is not a hex number that fits in an
    XLEN-bit word, or whose value does not fit the widest store (64 bits on
    RV32 for D-extension stores).
    """
    marker = MEM_WRITE_MARKER.search(line)
    if marker is None:
        return None

    raw = line.rstrip("\r\n")
    fields = MEM_WRITE_FIELDS.search(line, marker.start())
    if fields is None:
        raise ParseError(line_number, raw, "memory write without address", source)

    address = _parse_hex(fields.group("addr"), hex_digits(xlen))
    if address is None:
        raise ParseError(line_number, raw, "malformed write address", source)

    value_token = fields.group("value")
    if value_token is None:
        raise ParseError(line_number, raw, "memory write without a value", source)
    value = _parse_hex(value_token, store_digits(xlen))
    if value is None:
        raise ParseError(line_number, raw, f"malformed hex payload {value_token!r} for a {xlen}-bit target", source)

    return MemWrite(address, value, line_number)


def parse_trace(lines: Iterable[str], xlen: int = 64, source=None) -> Iterator[MemWrite]:
    """Yield every memory write in ``lines``, in order."""
    xlen = check_xlen(xlen)
    for line_number, line in enumerate(lines, 1):
        write = parse_line(line, line_number, xlen, source)
        if write is not None:
            log.debug("%s:%d write 0x%x <- 0x%x", source or "<trace>", line_number, write.address, write.value)
            yield write
