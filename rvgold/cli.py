"""
rvgold command line.

    rvgold extract                       # build/spike -> build/test_data
    rvgold run rv64i/beq.S               # compile, run Spike, extract
    rvgold run rv64i/bge.S --debug       # interactive Spike debugger
    rvgold suite 'rv64i/b*.S'            # every matching test
    rvgold compare build/test_data rtl_writes
    rvgold clean [--full]
"""

import argparse
import logging
import sys

from rvgold import __version__
from rvgold.compare import compare_files
from rvgold.config import OUTPUT_FORMATS, ExtractConfig, ToolchainConfig, parse_region
from rvgold.errors import RvgoldError
from rvgold.extract import extract
from rvgold.log import setup_logging
from rvgold.suite import DEFAULT_PATTERN, run_suite
from rvgold.toolchain import build_test, clean, print_artifacts

log = logging.getLogger(__name__)


def _region(text):
    try:
        return parse_region(text)
    except RvgoldError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _add_extract_options(p):
    p.add_argument("--xlen", type=int, choices=(32, 64), help="target word width (default: 64, or from ISA)")
    p.add_argument("--region", type=_region, metavar="START:END",
                   help="keep writes in [START, END) only (hex)")
    p.add_argument("--format", dest="fmt", choices=OUTPUT_FORMATS, help="output record format")


def _add_toolchain_options(p):
    p.add_argument("--isa", help="ISA string for gcc and Spike (default: rv64g)")
    p.add_argument("--build-dir", help="build directory (default: build)")
    p.add_argument("--tests-dir", help="directory holding test sources (default: riscv-tests)")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="rvgold",
        description="Generate expected memory-write data for RISC-V RTL tests from Spike commit logs.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=None,
                        help="-v for progress, -vv for debug output (default: RVGOLD_VERBOSE)")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("extract", help="turn a Spike commit log into reference data")
    p.add_argument("-i", "--trace", help="Spike trace (default: build/spike)")
    p.add_argument("-o", "--output", help="reference data file (default: build/test_data)")
    _add_extract_options(p)

    p = sub.add_parser("run", help="build a test, run Spike and extract reference data")
    p.add_argument("test", help="test source relative to the tests directory, e.g. rv64i/beq.S")
    p.add_argument("--debug", action="store_true", help="start Spike's interactive debugger instead")
    p.add_argument("--keep-trace", action="store_true", help="keep build/spike after extraction")
    _add_toolchain_options(p)
    _add_extract_options(p)

    p = sub.add_parser("suite", help="build every test matching a pattern")
    p.add_argument("pattern", nargs="?", default=DEFAULT_PATTERN, help=f"glob under the tests directory (default: {DEFAULT_PATTERN})")
    p.add_argument("--keep-trace", action="store_true")
    _add_toolchain_options(p)

    p = sub.add_parser("compare", help="compare observed RTL writes against reference data")
    p.add_argument("expected")
    p.add_argument("observed")
    p.add_argument("--xlen", type=int, choices=(32, 64), default=64)

    p = sub.add_parser("clean", help="remove the build directory")
    p.add_argument("--full", action="store_true", help="also remove the log directory")
    _add_toolchain_options(p)

    return parser


def _toolchain_config(args):
    return ToolchainConfig.from_env(
        isa=getattr(args, "isa", None),
        build_dir=getattr(args, "build_dir", None),
        tests_dir=getattr(args, "tests_dir", None),
    )


def cmd_extract(args):
    config = ExtractConfig.from_env(
        trace_path=args.trace,
        output_path=args.output,
        xlen=args.xlen,
        region=args.region,
        fmt=args.fmt,
    )
    result = extract(config)
    if result.empty:
        print(f"✓ No memory writes observed; wrote empty {result.output_path}")
    else:
        print(f"✓ Extracted {len(result)} memory writes to {result.output_path}")
    return 0


def cmd_run(args):
    toolchain = _toolchain_config(args)
    # Spike always writes the trace into the build directory
    extract_config = ExtractConfig.from_env(
        build_dir=toolchain.build_dir,
        default_xlen=toolchain.xlen,
        trace_path=toolchain.build_dir / "spike",
        xlen=args.xlen,
        region=args.region,
        fmt=args.fmt,
    )
    result = build_test(args.test, toolchain, keep_trace=args.keep_trace,
                        debug=args.debug, extract_config=extract_config)
    if not args.debug:
        print_artifacts(result)
    return 0


def cmd_suite(args):
    return run_suite(_toolchain_config(args), args.pattern, keep_trace=args.keep_trace)


def cmd_compare(args):
    result = compare_files(args.expected, args.observed, args.xlen)
    if result.ok:
        print(f"✓ PASS: {result.describe(args.xlen)}")
        return 0
    print(f"✗ FAIL: {result.describe(args.xlen)}")
    return 1


def cmd_clean(args):
    clean(_toolchain_config(args), full=args.full)
    return 0


COMMANDS = {
    "extract": cmd_extract,
    "run": cmd_run,
    "suite": cmd_suite,
    "compare": cmd_compare,
    "clean": cmd_clean,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        setup_logging(args.verbose)
        return COMMANDS[args.command](args)
    except RvgoldError as e:
        log.debug("%s failed", args.command, exc_info=True)
        print(f"✗ Error: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
