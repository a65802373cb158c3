"""
Golden vs. observed memory writes.

Both sides are lists of written values in execution order. An empty expected
set is a valid expectation: it means the test must not write at all.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from rvgold.config import check_xlen, hex_digits, store_digits
from rvgold.errors import ParseError, MissingInputError
from rvgold.trace import HEX_TOKEN

log = logging.getLogger(__name__)


def parse_records(lines, xlen: int = 64, source=None) -> List[int]:
    """Read values back from an extractor-format file (``values`` or ``addressed``)."""
    xlen = check_xlen(xlen)
    width = store_digits(xlen)
    values = []
    for line_number, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith("//") or line.startswith("#"):
            continue
        tokens = line.split()
        if len(tokens) > 2:
            raise ParseError(line_number, line, "expected '<value>' or '<addr> <value>'", source)
        token = tokens[-1]
        m = HEX_TOKEN.fullmatch(token)
        if not m or len(m.group("digits").lstrip("0")) > width:
            raise ParseError(line_number, line, f"malformed {xlen}-bit record", source)
        values.append(int(m.group("digits"), 16))
    return values


def load_records(path, xlen: int = 64) -> List[int]:
    path = Path(path)
    if not path.is_file():
        raise MissingInputError(path)
    with open(path, "r") as f:
        return parse_records(f, xlen, source=path.name)


@dataclass
class Comparison:
    expected_count: int
    observed_count: int
    first_mismatch: Optional[int] = None
    expected_value: Optional[int] = None
    observed_value: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.first_mismatch is None

    def describe(self, xlen: int = 64) -> str:
        width = hex_digits(xlen)
        if self.ok:
            if self.expected_count == 0:
                return "no writes expected, none observed"
            return f"{self.expected_count} writes match"
        i = self.first_mismatch
        if self.expected_value is not None and self.observed_value is not None:
            return (f"write #{i} differs: expected {self.expected_value:0{width}x}, "
                    f"observed {self.observed_value:0{width}x}")
        if self.expected_count == 0:
            return f"no writes expected, observed {self.observed_count}"
        if self.observed_value is None:
            return (f"observed only {self.observed_count} of {self.expected_count} writes; "
                    f"next expected {self.expected_value:0{width}x}")
        return (f"observed {self.observed_count - self.expected_count} extra writes; "
                f"first extra {self.observed_value:0{width}x}")


def compare(expected: Sequence[int], observed: Sequence[int]) -> Comparison:
    n = min(len(expected), len(observed))
    for i in range(n):
        if expected[i] != observed[i]:
            return Comparison(len(expected), len(observed), i, expected[i], observed[i])
    if len(expected) == len(observed):
        return Comparison(len(expected), len(observed))
    return Comparison(
        len(expected),
        len(observed),
        n,
        expected[n] if n < len(expected) else None,
        observed[n] if n < len(observed) else None,
    )


def compare_files(expected_path, observed_path, xlen: int = 64) -> Comparison:
    expected = load_records(expected_path, xlen)
    observed = load_records(observed_path, xlen)
    result = compare(expected, observed)
    if result.ok:
        log.info("%s matches %s: %s", observed_path, expected_path, result.describe(xlen))
    else:
        log.error("%s differs from %s: %s", observed_path, expected_path, result.describe(xlen))
    return result
