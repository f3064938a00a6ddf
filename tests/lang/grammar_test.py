import unittest

from snek.lang.grammar import parse
from snek.lang.tree import (Array, Assign, Binary, Block, Boolean, Break, Call, Continue, Def, Identifier, If, Index,
                            Member, NoneLiteral, Number, Param, Record, Return, String, Unary, While)


def statements(source):
    result = parse(source)
    assert result.ok, result.errors
    return result.program.statements


def expression(source):
    (statement,) = statements(source)
    return statement


a, b, c, d, e = (Identifier(name) for name in "abcde")


class ExpressionTestCase(unittest.TestCase):

    def test_literals(self):
        cases = {
            "1": Number(1.0),
            "-2.5": Number(-2.5),
            "'snek'": String("snek"),
            "True": Boolean(True),
            "False": Boolean(False),
            "None": NoneLiteral(),
            "[]": Array(()),
            "[1, a]": Array((Number(1.0), a)),
            "{}": Record(()),
            "{a, b: 2}": Record((("a", String("a")), ("b", Number(2.0)))),
            "(a)": a,
        }
        for case, expected in cases.items():
            self.assertEqual(expected, expression(case), case)

    def test_precedence(self):
        cases = {
            "a + b * c": Binary("+", a, Binary("*", b, c)),
            "(a + b) * c": Binary("*", Binary("+", a, b), c),
            "a < b + c": Binary("<", a, Binary("+", b, c)),
            "a is b < c": Binary("is", a, Binary("<", b, c)),
            "a and b is c": Binary("and", a, Binary("is", b, c)),
            "a or b and c": Binary("or", a, Binary("and", b, c)),
            "not a and b": Binary("and", Unary("not", a), b),
            "- a * b": Binary("*", Unary("-", a), b),
            "a = b or c": Assign("=", a, Binary("or", b, c)),
            "a += b * c": Assign("+=", a, Binary("*", b, c)),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, expression(case), case)

    def test_left_associativity(self):
        cases = {
            "a - b - c": Binary("-", Binary("-", a, b), c),
            "a / b * c": Binary("*", Binary("/", a, b), c),
            "a <= b >= c": Binary(">=", Binary("<=", a, b), c),
            "a = b = c": Assign("=", Assign("=", a, b), c),
            "a -= b += c": Assign("+=", Assign("-=", a, b), c),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, expression(case), case)

    def test_is_not(self):
        self.assertEqual(Binary("is not", a, b), expression("a is not b"))
        self.assertEqual(Binary("is", a, Unary("not", b)), expression("a is (not b)"))

    def test_postfix_chain(self):
        cases = {
            "a.b": Member(a, "b"),
            "a[0]": Index(a, Number(0.0)),
            "a()": Call(a, ()),
            "a(b, c)": Call(a, (b, c)),
            "a.b[0](1, 2)": Call(Index(Member(a, "b"), Number(0.0)), (Number(1.0), Number(2.0))),
            "io.print('x')": Call(Member(Identifier("io"), "print"), (String("x"),)),
            "not a.b": Unary("not", Member(a, "b")),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, expression(case), case)

    def test_spans(self):
        assign = expression("x = 12\n")
        self.assertEqual((0, 6), (assign.position, assign.length))
        self.assertEqual((4, 2), (assign.value.position, assign.value.length))

        call = expression("f(a, b)")
        self.assertEqual((0, 7), (call.position, call.length))


class StatementTestCase(unittest.TestCase):

    def test_empty_statements_are_discarded(self):
        self.assertEqual((a,), statements("\n\na\n\n"))
        self.assertEqual((), statements("\n# only a comment\n"))
        self.assertEqual((a, b), statements("a; b\n"))

    def test_def(self):
        expected = Def("f", (Param("x", Number(1.0)),), Block((Return(Identifier("x")),)))
        self.assertEqual((expected,), statements("def f(x=1):\n    return x\n"))

        expected = Def("g", (Param("a"), Param("b", a)), Block((Return(None),)))
        self.assertEqual((expected,), statements("def g(a, b=a): return\n"))

        self.assertEqual((Def("h", (), Block((NoneLiteral(),))),), statements("def h(): None\n"))

    def test_if(self):
        cases = {
            "if a: b\n": If(a, Block((b,))),
            "if a:\n    b\n    c\n": If(a, Block((b, c))),
            "if a: b\nelse: c\n": If(a, Block((b,)), Block((c,))),
            "if a:\n    b\nelse:\n    c\n": If(a, Block((b,)), Block((c,))),
            "if a: b\nelse if c: d\nelse: e\n": If(a, Block((b,)), If(c, Block((d,)), Block((e,)))),
        }
        for case, expected in cases.items():
            self.assertEqual((expected,), statements(case), case)

    def test_while(self):
        cases = {
            "while a: break; continue\n": While(a, Block((Break(), Continue()))),
            "while a:\n    b\n    break\n": While(a, Block((b, Break()))),
        }
        for case, expected in cases.items():
            self.assertEqual((expected,), statements(case), case)

    def test_nested_blocks(self):
        source = "if a:\n    while b:\n        c\n    d\ne\n"
        expected = (If(a, Block((While(b, Block((c,))), d))), e)
        self.assertEqual(expected, statements(source))

        source = "if a:\n    if b: c\nd\n"
        self.assertEqual((If(a, Block((If(b, Block((c,))),))), d), statements(source))

        source = "if a: while b: c\nd\n"
        self.assertEqual((If(a, Block((While(b, Block((c,))),))), d), statements(source))

    def test_blank_and_comment_lines_after_header(self):
        cases = {
            "def f():\n\n    return 1\n": Def("f", (), Block((Return(Number(1.0)),))),
            "def f():\n    # doc\n    return 1\n": Def("f", (), Block((Return(Number(1.0)),))),
            "if a:\n\n    b\n": If(a, Block((b,))),
            "if a:\n# note\n\n    b\nelse:\n    \n    c\n": If(a, Block((b,)), Block((c,))),
            "while a:\n        # indented comment\n    b\n": While(a, Block((b,))),
        }
        for case, expected in cases.items():
            self.assertEqual((expected,), statements(case), case)

    def test_no_trailing_newline(self):
        self.assertEqual((If(a, Block((b,))),), statements("if a:\n    b"))
        self.assertEqual((Return(a),), statements("return a"))

    def test_display(self):
        program = parse("def f(x=1):\n    return x\n").program
        display = program.display()

        self.assertTrue(display.startswith("Program"))
        self.assertIn("statements: Def(name='f')", display)
        self.assertIn("default: Number(value=1.0)", display)
        self.assertIn("value: Identifier(name='x')", display)


class SyntaxErrorTestCase(unittest.TestCase):

    def test_syntax_errors(self):
        should_fail = [
            "if :\n", "x = (1\n", "def (x):\n", "a b\n", "[1, 2\n", "{1: 2}\n", "else: a\n", "@\n", "if a:\nb\n",
            "a.1\n", "f(a,)\n", "while a\n    b\n", "if a: b\nelse c\n", "x = \n",
        ]
        for case in should_fail:
            result = parse(case)

            self.assertFalse(result.ok, case)
            self.assertEqual(1, len(result.errors), case)
            self.assertEqual("syntax", result.errors.records[0].stage, case)

    def test_error_location(self):
        result = parse("if :\n")
        error = result.errors.records[0]
        self.assertEqual("expected an expression, found Colon", error.message)
        self.assertEqual((3, 1), (error.position, error.length))

        result = parse("x = ")
        error = result.errors.records[0]
        self.assertEqual("expected an expression, found EndOfInput", error.message)
        self.assertEqual((4, 0), (error.position, error.length))

        result = parse("a b\n")
        self.assertEqual("expected NewLine or Semicolon, found Identifier", result.errors.records[0].message)

    def test_first_error_abandons_parse(self):
        result = parse("x = 1\nif :\ny = 2\nz z\n")

        self.assertEqual(1, len(result.errors))
        self.assertEqual((Assign("=", Identifier("x"), Number(1.0)),), result.program.statements)

    def test_deep_nesting(self):
        result = parse("x = 1\ny = " + "(" * 1000 + "1" + ")" * 1000 + "\n")

        self.assertEqual(1, len(result.errors))
        self.assertEqual("expression nested too deeply", result.errors.records[0].message)
        self.assertEqual("syntax", result.errors.records[0].stage)
        self.assertEqual((Assign("=", Identifier("x"), Number(1.0)),), result.program.statements)

        self.assertTrue(parse("x = " + "(" * 20 + "1" + ")" * 20 + "\n").ok)

    def test_lexical_errors_are_collected(self):
        result = parse("a\n  b\n")

        self.assertFalse(result.ok)
        self.assertEqual(["lexical"], [error.stage for error in result.errors])


if __name__ == '__main__':
    unittest.main()
