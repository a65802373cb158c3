"""Symbol tables written by ``nm`` (``build/prog.sym``, ``build/spike.sym``)."""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from rvgold.errors import ConfigError

log = logging.getLogger(__name__)


def parse_nm_output(text: str) -> Dict[str, int]:
    """Map symbol name -> address.

    Lines look like ``0000000040001000 D begin_signature``. Undefined symbols
    (``         U foo``) have no address and are skipped.
    """
    symbols = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) != 3:
            continue
        addr_str, _kind, name = parts
        try:
            symbols[name] = int(addr_str, 16)
        except ValueError:
            continue
    return symbols


def load_symbols(path) -> Dict[str, int]:
    path = Path(path)
    with open(path, "r") as f:
        return parse_nm_output(f.read())


def region_from_symbols(path, begin: str, end: str) -> Optional[Tuple[int, int]]:
    """Return the ``[begin, end)`` region named by two symbols.

    None when the symbol file is absent or does not define both symbols, so the
    caller can fall back to keeping every write.
    """
    if path is None or not Path(path).exists():
        log.debug("No symbol table at %s, region filter disabled", path)
        return None

    symbols = load_symbols(path)
    if begin not in symbols or end not in symbols:
        log.debug("%s does not define %s/%s, region filter disabled", path, begin, end)
        return None

    start, stop = symbols[begin], symbols[end]
    if stop <= start:
        raise ConfigError(f"{path}: {end} (0x{stop:x}) is not above {begin} (0x{start:x})")
    log.info("Region of interest from %s: 0x%x - 0x%x", Path(path).name, start, stop)
    return start, stop
