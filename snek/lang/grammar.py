"""Recursive-descent parser for the snek language. Pulls tokens from a Lexer one at a time (one token of lookahead) and
builds the tree defined in tree.py.

Expressions, lowest to highest precedence. Every binary level, assignment included, is a left-associative chain:

```
<assignment>     ::= <or> (("=" | "+=" | "-=" | "*=" | "/=") <or>)*
<or>             ::= <and> ("or" <and>)*
<and>            ::= <equality> ("and" <equality>)*
<equality>       ::= <comparison> (("is" | "is" "not") <comparison>)*
<comparison>     ::= <additive> (("<" | ">" | "<=" | ">=") <additive>)*
<additive>       ::= <multiplicative> (("+" | "-") <multiplicative>)*
<multiplicative> ::= <prefix> (("*" | "/") <prefix>)*
<prefix>         ::= ("not" | "-") <prefix> | <postfix>
<postfix>        ::= <primary> ("." <identifier> | "[" <expression> "]" | "(" <expressions>? ")")*
<primary>        ::= <number> | <string> | <identifier> | "True" | "False" | "None"
                   | "(" <expression> ")" | "[" <expressions>? "]" | "{" (<property> ("," <property>)*)? "}"
<property>       ::= <identifier> (":" <expression>)?         ; a bare key is shorthand for key: "key"
```

Statements:

```
<block>     ::= <newline> <indent> <statement>* <dedent>      ; indented block
              | <statement> (";" <statement>)* <newline>?     ; inline block
<statement> ::= <newline>                                     ; empty, discarded
              | "def" <identifier> "(" (<param> ("," <param>)*)? ")" ":" <block>
              | "if" <expression> ":" <block> ("else" ("if" ... | ":" <block>))?
              | "while" <expression> ":" <block>
              | "return" <expression>? | "break" | "continue"
              | <expression>
<param>     ::= <identifier> ("=" <expression>)?
```

The first syntax error abandons the whole parse: it is recorded in the error sink and the parser jumps to end of input.
"""

from dataclasses import dataclass

from snek.lang import tree
from snek.lang.error import Diagnostics, SnekSyntaxError
from snek.lang.lexical import END_OF_INPUT, Lexer, TokenKind, decode_string

ASSIGNMENT = {
    TokenKind.EQUAL: "=",
    TokenKind.PLUS_EQUAL: "+=",
    TokenKind.DASH_EQUAL: "-=",
    TokenKind.STAR_EQUAL: "*=",
    TokenKind.SLASH_EQUAL: "/=",
}
COMPARISON = {
    TokenKind.LEFT_ANGLE: "<",
    TokenKind.RIGHT_ANGLE: ">",
    TokenKind.LEFT_ANGLE_EQUAL: "<=",
    TokenKind.RIGHT_ANGLE_EQUAL: ">=",
}
ADDITIVE = {TokenKind.PLUS: "+", TokenKind.DASH: "-"}
MULTIPLICATIVE = {TokenKind.STAR: "*", TokenKind.SLASH: "/"}

STATEMENT_END = (TokenKind.NEWLINE, TokenKind.SEMICOLON)
BLOCK_END = (TokenKind.DEDENT, TokenKind.END_OF_INPUT)


@dataclass(frozen=True)
class ParseResult:
    program: tree.Program
    errors: Diagnostics

    @property
    def ok(self):
        return not self.errors


class Parser:
    """Parses one source text. Parser objects are single-use: parse() consumes the token stream."""

    def __init__(self, source, errors=None):
        self.source = source
        self.errors = errors if errors is not None else Diagnostics()
        self.lexer = Lexer(source, self.errors)

        self.current = None   # lookahead token
        self.previous = None  # last consumed token

    # -----------------------------------------------------------------------------------------------------------------
    # token helpers

    @property
    def is_eoi(self):
        return self.current.kind is TokenKind.END_OF_INPUT

    def advance(self):
        self.previous = self.current
        self.current = self.lexer.next()

    def check(self, *kinds):
        return self.current.kind in kinds

    def match(self, *kinds):
        """Consumes and returns the current token if it is one of kinds, else returns None."""
        token = self.current
        if token.kind in kinds:
            self.advance()
            return token
        return None

    def expect(self, *kinds):
        token = self.match(*kinds)
        if token is None:
            expected = " or ".join(kind.value for kind in kinds)
            raise SnekSyntaxError(f"expected {expected}, found {self.current.kind.value}", self.current)
        return token

    def text(self, token):
        return token.text(self.source)

    def span(self, start):
        """position/length keyword arguments for a node that starts at token start and ends at the last consumed
        token.
        """
        end = self.previous
        if start.position is None:  # block opened right before end of input
            start = end
        if end is None or end.position is None or end.position < start.position:
            return {"position": start.position or 0, "length": start.length or 0}
        return {"position": start.position, "length": end.position + end.length - start.position}

    # -----------------------------------------------------------------------------------------------------------------
    # expressions

    def parse_expression(self):
        return self.parse_assignment()

    def _parse_binary(self, operators, parse_operand, node_cls=tree.Binary):
        start = self.current
        left = parse_operand()
        while self.current.kind in operators:
            operator = operators[self.current.kind]
            self.advance()
            left = node_cls(operator, left, parse_operand(), **self.span(start))
        return left

    def parse_assignment(self):
        return self._parse_binary(ASSIGNMENT, self.parse_or, tree.Assign)

    def parse_or(self):
        return self._parse_binary({TokenKind.OR: "or"}, self.parse_and)

    def parse_and(self):
        return self._parse_binary({TokenKind.AND: "and"}, self.parse_equality)

    def parse_equality(self):
        start = self.current
        left = self.parse_comparison()
        while self.match(TokenKind.IS):
            operator = "is not" if self.match(TokenKind.NOT) else "is"
            left = tree.Binary(operator, left, self.parse_comparison(), **self.span(start))
        return left

    def parse_comparison(self):
        return self._parse_binary(COMPARISON, self.parse_additive)

    def parse_additive(self):
        return self._parse_binary(ADDITIVE, self.parse_multiplicative)

    def parse_multiplicative(self):
        return self._parse_binary(MULTIPLICATIVE, self.parse_prefix)

    def parse_prefix(self):
        start = self.match(TokenKind.NOT, TokenKind.DASH)
        if start is None:
            return self.parse_postfix()

        operator = "not" if start.kind is TokenKind.NOT else "-"
        return tree.Unary(operator, self.parse_prefix(), **self.span(start))

    def parse_postfix(self):
        start = self.current
        node = self.parse_primary()

        while True:
            if self.match(TokenKind.DOT):
                name = self.text(self.expect(TokenKind.IDENTIFIER))
                node = tree.Member(node, name, **self.span(start))
            elif self.match(TokenKind.LEFT_SQUARE):
                index = self.parse_expression()
                self.expect(TokenKind.RIGHT_SQUARE)
                node = tree.Index(node, index, **self.span(start))
            elif self.match(TokenKind.LEFT_PARENS):
                arguments = ()
                if not self.match(TokenKind.RIGHT_PARENS):
                    arguments = self.parse_expression_list()
                    self.expect(TokenKind.RIGHT_PARENS)
                node = tree.Call(node, arguments, **self.span(start))
            else:
                return node

    def parse_expression_list(self):
        expressions = [self.parse_expression()]
        while self.match(TokenKind.COMMA):
            expressions.append(self.parse_expression())
        return tuple(expressions)

    def parse_primary(self):
        token = self.current
        span = {"position": token.position, "length": token.length}

        if self.match(TokenKind.NUMBER):
            return tree.Number(float(self.text(token)), **span)
        elif self.match(TokenKind.STRING):
            return tree.String(decode_string(self.text(token)), **span)
        elif self.match(TokenKind.IDENTIFIER):
            return tree.Identifier(self.text(token), **span)
        elif self.match(TokenKind.TRUE, TokenKind.FALSE):
            return tree.Boolean(token.kind is TokenKind.TRUE, **span)
        elif self.match(TokenKind.NONE):
            return tree.NoneLiteral(**span)
        elif self.match(TokenKind.LEFT_PARENS):
            expression = self.parse_expression()
            self.expect(TokenKind.RIGHT_PARENS)
            return expression
        elif self.match(TokenKind.LEFT_SQUARE):
            return self.parse_array(token)
        elif self.match(TokenKind.LEFT_CURLY):
            return self.parse_record(token)

        raise SnekSyntaxError(f"expected an expression, found {token.kind.value}", token)

    def parse_array(self, start):
        elements = ()
        if not self.match(TokenKind.RIGHT_SQUARE):
            elements = self.parse_expression_list()
            self.expect(TokenKind.RIGHT_SQUARE)
        return tree.Array(elements, **self.span(start))

    def parse_record(self, start):
        properties = []
        if not self.match(TokenKind.RIGHT_CURLY):
            while True:
                key_token = self.expect(TokenKind.IDENTIFIER)
                key = self.text(key_token)

                if self.match(TokenKind.COLON):
                    value = self.parse_expression()
                else:
                    value = tree.String(key, position=key_token.position, length=key_token.length)
                properties.append((key, value))

                if self.match(TokenKind.RIGHT_CURLY):
                    break
                self.expect(TokenKind.COMMA)

        return tree.Record(tuple(properties), **self.span(start))

    # -----------------------------------------------------------------------------------------------------------------
    # statements

    def parse_statement(self, inline=False):
        """Returns the next statement, or None for an empty one (a bare newline)."""
        token = self.current

        if self.match(TokenKind.NEWLINE):
            return None
        elif self.check(TokenKind.INDENT):
            return self.parse_indented_block()
        elif self.match(TokenKind.DEF):
            return self.parse_def(token)
        elif self.match(TokenKind.IF):
            return self.parse_if(token)
        elif self.match(TokenKind.WHILE):
            return self.parse_while(token)
        elif self.match(TokenKind.RETURN):
            return self.parse_return(token, inline)
        elif self.match(TokenKind.BREAK):
            return self.end_statement(tree.Break(**self.span(token)), inline)
        elif self.match(TokenKind.CONTINUE):
            return self.end_statement(tree.Continue(**self.span(token)), inline)

        return self.end_statement(self.parse_expression(), inline)

    def end_statement(self, statement, inline):
        """A simple statement outside an inline block must be followed by a newline or semicolon (consumed), or by
        the end of the enclosing block (left for the block to consume).
        """
        if not inline and not self.check(*BLOCK_END):
            self.expect(*STATEMENT_END)
        return statement

    def parse_block(self):
        if self.match(TokenKind.NEWLINE):
            while self.match(TokenKind.NEWLINE):  # blank or comment-only lines before the indented body
                pass
            return self.parse_indented_block()
        return self.parse_inline_block()

    def parse_indented_block(self):
        start = self.expect(TokenKind.INDENT)

        statements = []
        while not self.match(TokenKind.DEDENT):
            if self.is_eoi:
                raise SnekSyntaxError("expected Dedent, found EndOfInput", self.current)

            statement = self.parse_statement()
            if statement is not None:
                statements.append(statement)

        return tree.Block(tuple(statements), **self.span(start))

    def parse_inline_block(self):
        start = self.current

        statements = []
        while not self.check(*BLOCK_END):
            statement = self.parse_statement(inline=True)
            if statement is not None:
                statements.append(statement)

            # compound statements end on the newline or dedent that closes their own block
            if self.previous.kind in (TokenKind.NEWLINE, TokenKind.DEDENT) or self.match(TokenKind.NEWLINE):
                break
            if self.check(*BLOCK_END):
                break
            self.expect(TokenKind.SEMICOLON)

        return tree.Block(tuple(statements), **self.span(start))

    def parse_def(self, start):
        name = self.text(self.expect(TokenKind.IDENTIFIER))
        self.expect(TokenKind.LEFT_PARENS)

        params = []
        if not self.match(TokenKind.RIGHT_PARENS):
            while True:
                param_token = self.expect(TokenKind.IDENTIFIER)
                default = self.parse_expression() if self.match(TokenKind.EQUAL) else None
                params.append(tree.Param(self.text(param_token), default, **self.span(param_token)))

                if self.match(TokenKind.RIGHT_PARENS):
                    break
                self.expect(TokenKind.COMMA)

        self.expect(TokenKind.COLON)
        body = self.parse_block()
        return tree.Def(name, tuple(params), body, **self.span(start))

    def parse_if(self, start):
        condition = self.parse_expression()
        self.expect(TokenKind.COLON)
        then = self.parse_block()

        otherwise = None
        else_token = self.match(TokenKind.ELSE)
        if else_token is not None:
            if self.match(TokenKind.IF):
                otherwise = self.parse_if(self.previous)
            elif self.match(TokenKind.COLON):
                otherwise = self.parse_block()
            else:
                msg = f"expected Colon or If, found {self.current.kind.value}"
                raise SnekSyntaxError(msg, self.current)

        return tree.If(condition, then, otherwise, **self.span(start))

    def parse_while(self, start):
        condition = self.parse_expression()
        self.expect(TokenKind.COLON)
        return tree.While(condition, self.parse_block(), **self.span(start))

    def parse_return(self, start, inline):
        if self.check(*STATEMENT_END, *BLOCK_END):
            return self.end_statement(tree.Return(None, **self.span(start)), inline)

        value = self.parse_expression()
        return self.end_statement(tree.Return(value, **self.span(start)), inline)

    # -----------------------------------------------------------------------------------------------------------------

    def abandon(self, error):
        """Records error and skips the rest of the source."""
        if error.position is None:  # found EndOfInput
            error.position, error.length = len(self.source), 0
        self.errors.add_error(error, "syntax")
        self.current = END_OF_INPUT

    def parse(self):
        """Parses the whole source. Syntax errors are recorded in self.errors; the statements parsed before the first
        one are kept in the returned Program.
        """
        self.advance()

        statements = []
        while not self.is_eoi:
            try:
                statement = self.parse_statement()
            except SnekSyntaxError as error:
                self.abandon(error)
                break
            except RecursionError:
                self.abandon(SnekSyntaxError("expression nested too deeply", self.current))
                break

            if statement is not None:
                statements.append(statement)

        return tree.Program(tuple(statements), position=0, length=len(self.source))


def parse(source, errors=None):
    """Parses source and returns a ParseResult. The program must not be run unless result.ok."""
    parser = Parser(source, errors)
    return ParseResult(parser.parse(), parser.errors)
