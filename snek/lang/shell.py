"""Handles interactive/command-line mode for the snek interpreter. Uses cmd as backend."""

import cmd

from snek.lang.session import Session


class Shell(cmd.Cmd):
    """Snek interpreter shell."""
    intro = "Snek interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for block continuations
    _tmp_prompt = "> "       # also used for prompt swapping in block continuations

    def __init__(self, sess, error_handler, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self.error_handler = error_handler

        self._tmp_lines = []

    def onecmd(self, line):
        """Routes every line through default while a block is open (so blank lines and 'exit' are not special)."""
        if self._tmp_lines:
            return self.default(line)
        return super().onecmd(line)

    def default(self, line):
        """Executes arbitrary snek code. A line ending in ':' opens a block that ends at the next empty line."""
        if line == "EOF":
            return self.do_EOF("")

        if self._tmp_lines or line.rstrip().endswith(":"):
            if line.strip():
                self._tmp_lines.append(line)
                self.prompt = self.secondary_prompt
                return False

            line = "\n".join(self._tmp_lines)
            self._tmp_lines = []
            self.prompt = self._tmp_prompt

        with self.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.add(line + "\n")
            self.error_handler.register_source(self.sess.path, self.sess.source)
            self.error_handler.report_all(self.sess.errors)

        return False

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the snek interpreter!\n\n"
              "Snek is a small, dynamically typed language whose blocks are delimited by indentation \n"
              "(4 spaces per level). Try 'x = [1, 2, 3]' followed by 'print(x[1])'. \n"
              "Lines ending in ':' open a block: type its indented lines, then an empty line to run it.\n"
              "Functions are defined with 'def name(param, other=default):'.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return False

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True


def start(error_handler):
    """Starts a shell over a fresh session."""
    error_handler.fatal = False
    Shell(Session(), error_handler).cmdloop()
