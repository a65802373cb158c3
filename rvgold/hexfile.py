"""
Verilog hex images (``objcopy -O verilog``).

The file is byte oriented: ``@XXXXXXXX`` sets the current address and each
following two-digit token is one byte.
"""

import logging
from pathlib import Path
from typing import Dict

from rvgold.errors import ParseError, MissingInputError

log = logging.getLogger(__name__)


def load_hex_file(filename) -> Dict[int, int]:
    """Load a Verilog hex file with address support.

    Returns a dictionary mapping byte address to byte value.
    """
    path = Path(filename)
    if not path.is_file():
        raise MissingInputError(path)

    memory = {}
    current_addr = 0

    with open(path, "r") as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("//"):
                continue

            # Address directive
            if line.startswith("@"):
                try:
                    current_addr = int(line[1:], 16)
                except ValueError:
                    raise ParseError(line_number, line, "bad address directive", path.name) from None
                continue

            if "//" in line:
                line = line.split("//")[0].strip()

            for hex_byte in line.split():
                try:
                    byte_val = int(hex_byte, 16)
                except ValueError:
                    raise ParseError(line_number, line, f"bad byte {hex_byte!r}", path.name) from None
                if byte_val > 0xFF:
                    raise ParseError(line_number, line, f"bad byte {hex_byte!r}", path.name)
                memory[current_addr] = byte_val
                current_addr += 1

    log.debug("Loaded %d bytes from %s", len(memory), path)
    return memory


def pack_words(memory: Dict[int, int], xlen: int = 32) -> Dict[int, int]:
    """Group a byte map into little-endian words of ``xlen`` bits.

    Keys are word-aligned byte addresses; missing bytes read as zero.
    """
    nbytes = xlen // 8
    words = {}
    if not memory:
        return words

    start = min(memory) & ~(nbytes - 1)
    end = max(memory)
    for word_addr in range(start, end + 1, nbytes):
        word = 0
        present = False
        for i in range(nbytes):
            byte_addr = word_addr + i
            if byte_addr in memory:
                word |= (memory[byte_addr] & 0xFF) << (i * 8)
                present = True
        # skip holes between sections
        if present:
            words[word_addr] = word
    return words
