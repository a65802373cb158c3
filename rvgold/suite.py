"""
Reference-data suite runner.

Builds every test matching a glob, one build directory per test, and reports
results the same way the RTL regression does.
"""

import glob
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from rvgold.config import ToolchainConfig
from rvgold.errors import RvgoldError
from rvgold.toolchain import build_test

log = logging.getLogger(__name__)

DEFAULT_PATTERN = "rv64i/*.S"


def find_tests(config: ToolchainConfig, pattern: str = DEFAULT_PATTERN) -> List[str]:
    """Test names (relative to ``tests_dir``) matching ``pattern``, sorted."""
    root = config.tests_dir
    matches = sorted(glob.glob(str(root / pattern)))
    return [Path(m).relative_to(root).as_posix() for m in matches if Path(m).is_file()]


def run_single_test(test: str, config: ToolchainConfig, keep_trace=False) -> Tuple[bool, Optional[str]]:
    """Build one test in its own directory. Returns (ok, error message)."""
    # rv32i/beq.S and rv64i/beq.S must not share a directory
    build_dir = config.build_dir / Path(test).with_suffix("")
    try:
        result = build_test(test, config.with_build_dir(build_dir), keep_trace=keep_trace, announce=False)
    except RvgoldError as e:
        log.debug("%s failed", test, exc_info=True)
        lines = str(e).splitlines()
        return False, "\n".join(lines[:3]) if lines else type(e).__name__
    if result.extract is not None and result.extract.empty:
        log.info("%s: no memory writes observed", test)
    return True, None


def run_suite(config: ToolchainConfig, pattern: str = DEFAULT_PATTERN, keep_trace=False) -> int:
    """Run the suite and print a summary. Returns the process exit status."""
    tests = find_tests(config, pattern)
    if not tests:
        print(f"No tests found matching pattern: {config.tests_dir / pattern}")
        return 1

    print("=" * 60)
    print("RISC-V Reference Data Suite")
    print(f"Found {len(tests)} tests")
    print("=" * 60)
    print()

    passed = []
    failed = []

    for test in tests:
        print(f"Running {test}... ", end="", flush=True)
        success, error = run_single_test(test, config, keep_trace)
        if success:
            print("✓ PASSED")
            passed.append(test)
        else:
            print("✗ FAILED")
            if error and len(error) < 200:
                print(f"  Error: {error}")
            failed.append(test)

    print()
    print("=" * 60)
    print("Results")
    print("=" * 60)
    print(f"Total:  {len(tests)}")
    print(f"Passed: {len(passed)} ({100 * len(passed) // len(tests)}%)")
    print(f"Failed: {len(failed)}")

    if failed:
        print()
        print("Failed tests:")
        for name in failed:
            print(f"  - {name}")

    print("=" * 60)
    return 1 if failed else 0
