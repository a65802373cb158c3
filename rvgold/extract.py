"""
Trace extraction: Spike commit log in, expected-data file out.

The output is written to a temporary file next to the destination and renamed
into place once the whole trace has parsed. A run that fails leaves no output
file behind, including any stale one from an earlier run.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from rvgold.config import ExtractConfig
from rvgold.errors import MissingTraceError
from rvgold.symbols import region_from_symbols
from rvgold.trace import MemWrite, parse_trace

log = logging.getLogger(__name__)


@dataclass
class ExtractResult:
    output_path: Path
    writes: List[MemWrite] = field(default_factory=list)
    region: Optional[Tuple[int, int]] = None
    dropped: int = 0

    @property
    def empty(self) -> bool:
        """No writes observed. Downstream this means "assert no writes"."""
        return not self.writes

    def __len__(self):
        return len(self.writes)


def in_region(write: MemWrite, region) -> bool:
    if region is None:
        return True
    start, end = region
    return start <= write.address < end


def format_record(write: MemWrite, xlen: int, fmt: str = "values") -> str:
    if fmt == "addressed":
        return f"{write.format_address(xlen)} {write.format_value(xlen)}"
    return write.format_value(xlen)


def render(writes: Iterable[MemWrite], xlen: int, fmt: str = "values") -> str:
    return "".join(format_record(w, xlen, fmt) + "\n" for w in writes)


def write_atomic(path, text: str):
    """Replace ``path`` with ``text`` without ever exposing a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", newline="\n") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def resolve_region(config: ExtractConfig):
    if config.region is not None:
        return config.region
    begin, end = config.region_symbols
    return region_from_symbols(config.symbols_path, begin, end)


def collect(lines: Iterable[str], xlen: int, region=None, source=None):
    """Filter-map-collect over trace lines. Returns (kept, dropped_count)."""
    kept = []
    dropped = 0
    for write in parse_trace(lines, xlen, source):
        if in_region(write, region):
            kept.append(write)
        else:
            dropped += 1
    return kept, dropped


def extract(config: ExtractConfig) -> ExtractResult:
    """Run one extraction as described by ``config``."""
    trace_path = config.trace_path
    try:
        if not trace_path.is_file():
            raise MissingTraceError(trace_path)
        region = resolve_region(config)
        with open(trace_path, "r", errors="replace") as f:
            writes, dropped = collect(f, config.xlen, region, source=trace_path.name)
    except Exception:
        # no stale golden data may survive a failed run
        if config.output_path.exists():
            log.debug("Removing stale %s", config.output_path)
            config.output_path.unlink()
        raise

    write_atomic(config.output_path, render(writes, config.xlen, config.fmt))

    result = ExtractResult(config.output_path, writes, region, dropped)
    if result.empty:
        log.warning("No memory writes observed in %s; %s is empty", trace_path, config.output_path)
    else:
        log.info("Extracted %d memory writes to %s", len(writes), config.output_path)
    if dropped:
        log.info("Dropped %d writes outside region 0x%x - 0x%x", dropped, region[0], region[1])
    return result
