import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from snek.lang.error import Diagnostic, ErrorHandler, SnekError
from snek.lang.primitives import default_primitives
from snek.lang.session import Session
from snek.main import main


def session(source=""):
    output = []
    return Session(source, primitives=default_primitives(output.append)), output


class SessionTestCase(unittest.TestCase):

    def test_run(self):
        sess, output = session("def square(x): return x * x\nprint(square(4))\n")

        self.assertTrue(sess.run())
        self.assertEqual(["16"], output)
        self.assertFalse(sess.errors)

    def test_syntax_error_prevents_evaluation(self):
        sess, output = session("print(1)\nif :\n")

        self.assertFalse(sess.run())
        self.assertEqual([], output)
        self.assertEqual(["syntax"], [error.stage for error in sess.errors])

    def test_lexical_error_prevents_evaluation(self):
        sess, output = session("print(1)\n  print(2)\n")

        self.assertFalse(sess.run())
        self.assertEqual([], output)
        self.assertEqual(["lexical"], [error.stage for error in sess.errors])

    def test_runtime_errors_are_reported(self):
        sess, output = session("print(1 / 0)\nprint('still running')\n")

        self.assertTrue(sess.run())
        self.assertEqual(["still running"], output)
        self.assertEqual(["runtime"], [error.stage for error in sess.errors])

    def test_add_keeps_bindings(self):
        sess, output = session()

        self.assertTrue(sess.add("x = 1\n"))
        self.assertTrue(sess.add("def inc(): x += 1\n"))
        self.assertTrue(sess.add("inc()\nprint(x)\n"))
        self.assertFalse(sess.add("print(\n"))
        self.assertTrue(sess.add("print(x)\n"))

        self.assertEqual(["2", "2"], output)
        self.assertFalse(sess.errors)

    def test_run_twice(self):
        sess, output = session("print(len(5))\nprint('ok')\n")

        self.assertTrue(sess.run())
        self.assertTrue(sess.run())
        self.assertEqual(["ok", "ok"], output)
        self.assertEqual(["runtime"], [error.stage for error in sess.errors])

    def test_run_after_tokens(self):
        sess, __ = session("a = 1\n  b = 2\n")
        sess.tokens()

        self.assertFalse(sess.run())
        self.assertEqual(["lexical"], [error.stage for error in sess.errors])

    def test_tokens(self):
        sess, __ = session("a = 1")
        self.assertEqual(["a", "=", "1", ""], [token.text(sess.source) for token in sess.tokens()])

    def test_from_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "program.snek")
            with open(path, "w", encoding="utf-8") as file:
                file.write("print('from file')\n")

            output = []
            sess = Session.from_file(path, default_primitives(output.append))
            sess.run()

        self.assertEqual(path, sess.path)
        self.assertEqual(["from file"], output)

    def test_missing_file(self):
        self.assertRaises(SnekError, Session.from_file, "does/not/exist.snek")


class ErrorHandlerTestCase(unittest.TestCase):

    def test_locate(self):
        handler = ErrorHandler(fatal=False)
        handler.register_source("f.snek", "a\nbc d\n")

        self.assertEqual(("a", 1, 0), handler.locate(0))
        self.assertEqual(("bc d", 2, 3), handler.locate(5))
        self.assertEqual(("", 3, 0), handler.locate(7))

    def test_report(self):
        handler = ErrorHandler(fatal=False)
        handler.register_source("f.snek", "x = 1\nif :\n")

        stdout = io.StringIO()
        with redirect_stdout(stdout):
            handler.report(Diagnostic("expected an expression, found Colon", 9, 1, "syntax"))

        printed = stdout.getvalue()
        self.assertIn("f.snek:2:4:", printed)
        self.assertIn("syntax error:", printed)
        self.assertIn("expected an expression, found Colon", printed)
        self.assertIn("^", printed)

    def test_context_manager(self):
        handler = ErrorHandler(fatal=False)

        stdout = io.StringIO()
        with redirect_stdout(stdout):
            with handler:
                raise SnekError("'x.snek' could not be opened")

        self.assertIn("'x.snek' could not be opened", stdout.getvalue())

        handler.fatal = True
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit):
                with handler:
                    raise SnekError("fatal")


class MainTestCase(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.directory.cleanup()

    def write(self, source):
        path = os.path.join(self.directory.name, "main.snek")
        with open(path, "w", encoding="utf-8") as file:
            file.write(source)
        return path

    def call(self, *argv):
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            status = main(list(argv))
        return status, stdout.getvalue()

    def test_run_file(self):
        status, printed = self.call(self.write("print('hello', 1 + 1)\n"))

        self.assertEqual(0, status)
        self.assertEqual("hello 2\n", printed)

    def test_tokens(self):
        status, printed = self.call(self.write("x = 1\n"), "--tokens")

        self.assertEqual(0, status)
        self.assertEqual(["Identifier 'x'", "Equal '='", "Number '1'", "NewLine '\\n'", "EndOfInput"],
                         printed.splitlines())

    def test_ast(self):
        status, printed = self.call(self.write("x = 1\n"), "--ast")

        self.assertEqual(0, status)
        self.assertTrue(printed.startswith("Program"))
        self.assertIn("Assign(operator='=')", printed)

    def test_syntax_error_status(self):
        status, printed = self.call(self.write("print('never')\nif :\n"))

        self.assertEqual(1, status)
        self.assertNotIn("never", printed)
        self.assertIn("expected an expression, found Colon", printed)

    def test_missing_file(self):
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit):
                main([os.path.join(self.directory.name, "missing.snek")])


if __name__ == '__main__':
    unittest.main()
