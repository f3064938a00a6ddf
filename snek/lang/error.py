"""Error handling for the snek language. Faults found in user programs are never raised out of the pipeline: the lexer,
parser and evaluator record them as Diagnostics, and ErrorHandler renders them against the source. Only SnekErrors
should reach ErrorHandler during a run: any other exception that makes it there is assumed to be an internal issue.
"""

import sys
from dataclasses import dataclass

from termcolor import colored


class SnekError(Exception):
    """Base class for snek errors. position/length locate the offending span of source (position may be None when the
    error has no location, e.g. a missing file).
    """

    def __init__(self, message, position=None, length=0):
        super().__init__(message)
        self.message = message
        self.position = position
        self.length = length


class SnekSyntaxError(SnekError):
    """Raised by the parser on the first grammar violation. Caught by Parser.parse, never by user code."""

    def __init__(self, message, token):
        super().__init__(message, token.position, token.length)
        self.token = token


class SnekRuntimeError(SnekError):
    """Raised by the evaluator while running a statement. node is the AST node that failed."""

    def __init__(self, message, node=None):
        if node is None:
            super().__init__(message)
        else:
            super().__init__(message, node.position, node.length)
        self.node = node


@dataclass(frozen=True)
class Diagnostic:
    message: str
    position: int
    length: int
    stage: str = "syntax"


class Diagnostics:
    """Ordered error sink shared by the lexer, parser and evaluator of one session."""

    def __init__(self):
        self.records = []

    def add(self, message, position, length, stage):
        self.records.append(Diagnostic(message, position, length, stage))

    def add_error(self, error, stage):
        """Records a SnekError. Errors without a location are pinned to the start of the source."""
        position = error.position if error.position is not None else 0
        self.add(error.message, position, error.length or 0, stage)

    def stage(self, stage):
        return [record for record in self.records if record.stage == stage]

    def clear(self):
        self.records.clear()

    def __iter__(self):
        return iter(self.records)

    def __len__(self):
        return len(self.records)

    def __bool__(self):
        return bool(self.records)

    def __repr__(self):
        return f"Diagnostics({self.records!r})"


class ErrorHandler:
    """Context manager that reports snek diagnostics and turns stray exceptions into readable errors."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.path = "<in>"
        self.source = ""

    def register_source(self, path, source):
        """Registers the source diagnostics will be rendered against. Should be called before report/throw."""
        self.path = path
        self.source = source

    def locate(self, position):
        """Returns (line text, 1-based line number, 0-based column) of position in the registered source."""
        position = max(0, min(position, len(self.source)))
        start = self.source.rfind("\n", 0, position) + 1
        end = self.source.find("\n", position)
        if end == -1:
            end = len(self.source)

        line = self.source[start:end].rstrip("\r")
        return line, self.source.count("\n", 0, start) + 1, position - start

    def diagnose(self, diagnostic, warning=False):
        """Returns the offending line with the diagnostic's span highlighted and underlined."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR
        line, __, col = self.locate(diagnostic.position)

        end = min(max(col + diagnostic.length, col + 1), max(len(line), col + 1))

        result = "  " + line[:col]
        result += colored(line[col:end], color, attrs=["bold"])
        result += line[end:] + "\n"

        result += "  " + " " * col
        result += colored("^" + "~" * (end - col - 1), color, attrs=["bold"])

        return result

    def report(self, diagnostic, warning=False):
        """Prints a diagnostic: location, stage and message, then the highlighted source line."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR
        tag = "warning" if warning else "error"
        line, line_num, col = self.locate(diagnostic.position)

        message = colored(f"{self.path}:{line_num}:{col + 1}: ", attrs=["bold"])
        message += colored(f"{diagnostic.stage} {tag}: ", color, attrs=["bold"]) + diagnostic.message
        print(message)

        if line:
            print(self.diagnose(diagnostic, warning))

    def report_all(self, diagnostics):
        for diagnostic in diagnostics:
            self.report(diagnostic)

    def throw(self, error, internal=False):
        """Prints an error that did not come from a user program's diagnostics. Exits if fatal."""
        message = ""
        if internal:
            message += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        message += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.message
        print(message)

        if not internal and error.position is not None and self.source:
            print(self.diagnose(Diagnostic(error.message, error.position, error.length, "runtime")))

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(SnekError("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(SnekError("maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, SnekError):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(SnekError(f"unknown error: '{exc_type.__name__}: {exc_val}'"), internal=True)
            do_exit = True

        return not do_exit
