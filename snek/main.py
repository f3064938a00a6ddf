"""Command line entry point for the snek interpreter: runs a .snek file, prints its tokens or its syntax tree, or starts
the interactive shell. Installed as the `snek` console script.
"""

import argparse
import sys

from snek.lang.error import ErrorHandler
from snek.lang.lexical import TokenKind
from snek.lang.session import Session
from snek.lang import shell


def print_tokens(sess):
    """Prints one token per line: kind and quoted text."""
    for token in sess.tokens():
        if token.kind is TokenKind.END_OF_INPUT:
            print(token.kind.value)
        else:
            print(f"{token.kind.value} {token.text(sess.source)!r}")


def main(argv=None):
    """Runs snek interpreter. Returns the process exit status."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="snek")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--tokens", action="store_true", help="print the file's tokens instead of running it")
        parser.add_argument("--ast", action="store_true", help="print the file's syntax tree instead of running it")
        args = parser.parse_args(argv)

        if args.file is None:
            shell.start(error_handler)
            return 0

        sess = Session.from_file(args.file)
        error_handler.register_source(sess.path, sess.source)

        if args.tokens:
            print_tokens(sess)
        elif args.ast:
            program = sess.parse()
            if not sess.errors:
                print(program.display())
        else:
            sess.run()

        error_handler.report_all(sess.errors)
        return 1 if sess.errors.stage("lexical") or sess.errors.stage("syntax") else 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
