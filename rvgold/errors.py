"""Exception hierarchy. Every error knows the exit status the CLI reports."""


class RvgoldError(Exception):
    exit_code = 1


class ParseError(RvgoldError):
    """A memory-write record that matched the grammar but could not be parsed."""

    exit_code = 1

    def __init__(self, line_number, line, reason="malformed hex payload", source=None):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        self.source = source
        where = f"{source}:{line_number}" if source else f"line {line_number}"
        super().__init__(f"{where}: {reason}: {line!r}")


class MissingInputError(RvgoldError):
    """A file the step depends on does not exist."""

    exit_code = 2

    def __init__(self, path, hint=None):
        self.path = path
        message = f"Input file not found: {path}"
        if hint:
            message += f" ({hint})"
        super().__init__(message)


class MissingTraceError(MissingInputError):
    """The Spike trace is not there; the simulator run has not happened."""

    def __init__(self, path):
        super().__init__(path, "run Spike first")


class ConfigError(RvgoldError):
    exit_code = 2


class ToolError(RvgoldError):
    """An external tool could not be started, failed, or timed out."""

    exit_code = 3

    def __init__(self, tool, message, returncode=None, output=""):
        self.tool = tool
        self.returncode = returncode
        self.output = output
        super().__init__(f"{tool}: {message}")
