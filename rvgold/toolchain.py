"""
Build a test program and generate its reference data.

Each test is compiled twice: ``prog.elf`` with the RTL link layout and
``spike.elf`` with the Spike one. Spike runs ``spike.elf`` with commit
logging, and the commit log is turned into ``test_data``.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from rvgold.config import ExtractConfig, ToolchainConfig
from rvgold.errors import ConfigError, ToolError
from rvgold.extract import ExtractResult, extract

log = logging.getLogger(__name__)

ARTIFACTS = (
    ("prog.elf", "RTL simulation binary"),
    ("prog.hex", "Memory initialization file"),
    ("prog.dump", "Disassembly listing"),
    ("spike.elf", "Spike simulation binary"),
    ("test_data", "Extracted reference data"),
)


@dataclass
class BuildResult:
    test: str
    build_dir: Path
    outputs: Dict[str, Path] = field(default_factory=dict)
    extract: Optional[ExtractResult] = None


def ensure_ignored_dir(path) -> Path:
    """Create ``path`` with a ``.gitignore`` that ignores everything in it."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    (path / ".gitignore").write_text("*\n")
    return path


def run_tool(tool: str, args: List[str], stdout_path=None, timeout=None) -> str:
    """Run one external tool and return its combined output.

    With ``stdout_path`` the combined stdout/stderr is also written there
    (the ``2>&1 | tee`` of the shell flow).
    """
    cmd = [tool] + [str(a) for a in args]
    log.debug("$ %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError:
        raise ToolError(tool, "not found on PATH") from None
    except subprocess.TimeoutExpired as e:
        output = e.output or ""
        if isinstance(output, bytes):
            output = output.decode(errors="replace")
        raise ToolError(tool, f"timed out after {timeout} s", output=output) from None

    output = result.stdout or ""
    if stdout_path is not None:
        Path(stdout_path).write_text(output)
    if result.returncode != 0:
        lines = [l for l in output.splitlines() if l.strip()]
        detail = "\n".join(lines[-3:]) if lines else "no output"
        raise ToolError(tool, f"exited with status {result.returncode}\n{detail}",
                        returncode=result.returncode, output=output)
    return output


class Toolchain:
    """The external tools of one ToolchainConfig."""

    def __init__(self, config: ToolchainConfig):
        self.config = config

    def source_for(self, test: str) -> Path:
        if not test or test == "default":
            raise ConfigError("A test is required, e.g. rv64i/beq.S")
        source = self.config.tests_dir / test
        if not source.is_file():
            raise ConfigError(f"Test file '{source}' does not exist")
        return source

    def compile(self, source, output, linker_script):
        cfg = self.config
        args = [
            f"-march={cfg.isa}", "-nostdlib", "-nostartfiles",
            "-o", output, source,
            "-I", cfg.include_dir,
            "-T", linker_script,
        ]
        args.extend(cfg.extra_cflags)
        run_tool(cfg.gcc, args)

    def to_verilog_hex(self, elf, output):
        run_tool(self.config.objcopy, ["-O", "verilog", elf, output])

    def symbols(self, elf, output):
        run_tool(self.config.nm, [elf], stdout_path=output)

    def disassemble(self, elf, output):
        run_tool(self.config.objdump, ["-d", elf], stdout_path=output)

    def spike_args(self, elf, interactive=False) -> List[str]:
        cfg = self.config
        args = ["-l", "--log-commits"]
        if interactive:
            args.append("-d")
        args += [
            f"--isa={cfg.isa}",
            f"--pc=0x{cfg.reset_pc:x}",
            f"-m0x{cfg.mem_base:x}:0x{cfg.mem_size:x}",
            str(elf),
        ]
        return args

    def run_spike(self, elf, trace_path):
        run_tool(self.config.spike, self.spike_args(elf), stdout_path=trace_path,
                 timeout=self.config.spike_timeout)

    def run_spike_interactive(self, elf) -> int:
        """Hand the terminal to Spike's debugger. Returns its exit status."""
        cmd = [self.config.spike] + self.spike_args(elf, interactive=True)
        log.debug("$ %s", " ".join(cmd))
        try:
            return subprocess.run(cmd).returncode
        except FileNotFoundError:
            raise ToolError(self.config.spike, "not found on PATH") from None


def step(message):
    print(f"==> {message}", flush=True)


def build_test(test: str, config: ToolchainConfig, keep_trace=False, debug=False,
               extract_config: Optional[ExtractConfig] = None, announce=True) -> BuildResult:
    """Compile ``test``, run it on Spike and extract its reference data."""
    tools = Toolchain(config)
    source = tools.source_for(test)

    build = ensure_ignored_dir(config.build_dir)
    ensure_ignored_dir(config.log_dir)
    out = {name: build / name for name in (
        "prog.elf", "spike.elf", "prog.hex", "prog.sym", "spike.sym",
        "prog.dump", "spike.dump", "spike", "test_data",
    )}
    result = BuildResult(test, build, out)
    # a failed build must not leave the previous test's reference data behind
    stale = [out["spike"], out["test_data"]]
    if extract_config is not None:
        stale.append(extract_config.output_path)
    for path in stale:
        if path.exists():
            log.debug("Removing stale %s", path)
            path.unlink()

    if announce:
        step(f"Building test: {test}")
    else:
        log.info("Building test: %s", test)
    log.info("Compiling for RTL simulation")
    tools.compile(source, out["prog.elf"], config.rtl_linker_script)
    log.info("Compiling for Spike simulation")
    tools.compile(source, out["spike.elf"], config.spike_linker_script)

    log.info("Generating hex file and symbol tables")
    tools.to_verilog_hex(out["prog.elf"], out["prog.hex"])
    tools.symbols(out["prog.elf"], out["prog.sym"])
    tools.symbols(out["spike.elf"], out["spike.sym"])
    tools.disassemble(out["prog.elf"], out["prog.dump"])
    tools.disassemble(out["spike.elf"], out["spike.dump"])

    if debug:
        print("Entering interactive Spike debugger...")
        status = tools.run_spike_interactive(out["spike.elf"])
        if status != 0:
            raise ToolError(config.spike, f"exited with status {status}", returncode=status)
        log.info("Debug run: reference data not extracted")
        return result

    log.info("Running Spike ISA simulator")
    tools.run_spike(out["spike.elf"], out["spike"])

    log.info("Extracting test data")
    if extract_config is None:
        extract_config = ExtractConfig.from_env(
            build_dir=build,
            default_xlen=config.xlen,
            trace_path=out["spike"],
            output_path=out["test_data"],
        )
    try:
        result.extract = extract(extract_config)
    finally:
        if not keep_trace and extract_config.trace_path.exists():
            extract_config.trace_path.unlink()
    return result


def print_artifacts(result: BuildResult):
    print("✓ Test completed successfully!")
    print(f"==> Output files in {result.build_dir}/ directory:")
    for name, description in ARTIFACTS:
        print(f"  {name:<14} - {description}")
    if result.extract is not None and result.extract.empty:
        print("  (test_data is empty: no memory writes observed)")


def clean(config: ToolchainConfig, full=False):
    """Remove the build directory, and the log directory when ``full``."""
    targets = [config.build_dir] + ([config.log_dir] if full else [])
    for path in targets:
        if path.exists():
            shutil.rmtree(path)
            log.info("Removed %s", path)
    label = "Build and log directories" if full else "Build directory"
    print(f"✓ {label} cleaned")

