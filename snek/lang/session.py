"""Session control for the snek language: runs the lexer -> parser -> evaluator pipeline over one source, either a file
or lines typed in the shell.
"""

from snek.lang.error import Diagnostics, SnekError
from snek.lang.grammar import Parser
from snek.lang.lexical import tokenize
from snek.lang.primitives import default_primitives
from snek.lang.runtime import Evaluator


class Session:
    """Governs a snek session: one diagnostics sink and one evaluator, whose bindings persist across add calls."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, source="", path=SH_FILE, primitives=None):
        self.source = source
        self.path = path                # used for error messages
        self.errors = Diagnostics()

        if primitives is None:
            primitives = default_primitives()
        self.evaluator = Evaluator(primitives, self.errors)

    @classmethod
    def from_file(cls, path, primitives=None):
        """Reads path as UTF-8 and returns a Session over its contents."""
        try:
            with open(path, "r", encoding="utf-8") as file:
                source = file.read()
        except OSError:
            raise SnekError(f"'{path}' could not be opened")

        return cls(source, path, primitives)

    def tokens(self):
        """Returns the source's full token list. Lexical errors are recorded in self.errors."""
        return tokenize(self.source, self.errors)

    def parse(self):
        """Returns the source's Program. Lexical and syntax errors are recorded in self.errors."""
        return Parser(self.source, self.errors).parse()

    def run(self):
        """Parses and, only if no lexical or syntax error was found, evaluates the source. Returns whether the source
        was evaluated. Runtime errors are recorded in self.errors but do not change the result. Errors left by earlier
        calls are dropped first.
        """
        self.errors.clear()
        program = self.parse()
        if self.errors:
            return False

        self.evaluator.run(program)
        return True

    def add(self, source):
        """Replaces the source and runs it against the same evaluator. Errors from previous sources are dropped."""
        self.source = source
        return self.run()
