"""Lexical analysis for the snek language. Tokens are produced one at a time on demand (Lexer.next), and carry only
their kind and span: text is recovered from the source with Token.text.

Tokens are classified by a priority-ordered list of rules: at each position the rules are tried in declaration order
and the first one that matches wins. Order is therefore part of the grammar:

```
keywords      ; before identifiers, and never as a prefix of a longer identifier ("define" is an Identifier)
numbers       ; -?[0-9]+(\\.[0-9]+)?  ("-1" is one Number token, so "a -1" is two operands)
brackets
<= >= *= /= += -=                       ; before their one-character prefixes
* / + - < > , . : ; =
strings       ; '...' or "..." on one line, with backslash escapes
identifiers
spaces, newlines, comments              ; spaces and comments are never yielded
error         ; any other single character
```

Indentation is reported through synthetic Indent/Dedent tokens, one per INDENT_UNIT of change. Every Indent is
eventually matched by a Dedent, at the latest right before EndOfInput.
"""

import re
from collections import deque
from dataclasses import dataclass
from enum import Enum

INDENT_UNIT = 4


class TokenKind(Enum):
    INDENT = "Indent"
    DEDENT = "Dedent"
    NEWLINE = "NewLine"
    END_OF_INPUT = "EndOfInput"
    ERROR = "Error"

    DEF = "Def"
    IF = "If"
    ELSE = "Else"
    WHILE = "While"
    RETURN = "Return"
    BREAK = "Break"
    CONTINUE = "Continue"
    AND = "And"
    OR = "Or"
    NOT = "Not"
    IS = "Is"
    TRUE = "True"
    FALSE = "False"
    NONE = "None"

    IDENTIFIER = "Identifier"
    NUMBER = "Number"
    STRING = "String"

    LEFT_PARENS = "LeftParens"
    RIGHT_PARENS = "RightParens"
    LEFT_SQUARE = "LeftSquare"
    RIGHT_SQUARE = "RightSquare"
    LEFT_CURLY = "LeftCurly"
    RIGHT_CURLY = "RightCurly"

    LEFT_ANGLE_EQUAL = "LeftAngleEqual"
    RIGHT_ANGLE_EQUAL = "RightAngleEqual"
    STAR_EQUAL = "StarEqual"
    SLASH_EQUAL = "SlashEqual"
    PLUS_EQUAL = "PlusEqual"
    DASH_EQUAL = "DashEqual"

    STAR = "Star"
    SLASH = "Slash"
    PLUS = "Plus"
    DASH = "Dash"
    LEFT_ANGLE = "LeftAngle"
    RIGHT_ANGLE = "RightAngle"

    COMMA = "Comma"
    DOT = "Dot"
    COLON = "Colon"
    SEMICOLON = "Semicolon"
    EQUAL = "Equal"

    SPACE = "Space"
    COMMENT = "Comment"

    def __repr__(self):
        return self.value


def _keyword(word):
    return re.compile(re.escape(word) + r"(?!\w)")


def _symbol(symbol):
    return re.compile(re.escape(symbol))


RULES = [
    (TokenKind.DEF, _keyword("def")),
    (TokenKind.IF, _keyword("if")),
    (TokenKind.ELSE, _keyword("else")),
    (TokenKind.WHILE, _keyword("while")),
    (TokenKind.RETURN, _keyword("return")),
    (TokenKind.BREAK, _keyword("break")),
    (TokenKind.CONTINUE, _keyword("continue")),
    (TokenKind.OR, _keyword("or")),
    (TokenKind.AND, _keyword("and")),
    (TokenKind.IS, _keyword("is")),
    (TokenKind.NOT, _keyword("not")),
    (TokenKind.TRUE, _keyword("True")),
    (TokenKind.FALSE, _keyword("False")),
    (TokenKind.NONE, _keyword("None")),

    (TokenKind.NUMBER, re.compile(r"-?[0-9]+(\.[0-9]+)?")),

    (TokenKind.LEFT_PARENS, _symbol("(")),
    (TokenKind.RIGHT_PARENS, _symbol(")")),
    (TokenKind.LEFT_SQUARE, _symbol("[")),
    (TokenKind.RIGHT_SQUARE, _symbol("]")),
    (TokenKind.LEFT_CURLY, _symbol("{")),
    (TokenKind.RIGHT_CURLY, _symbol("}")),

    (TokenKind.LEFT_ANGLE_EQUAL, _symbol("<=")),
    (TokenKind.RIGHT_ANGLE_EQUAL, _symbol(">=")),
    (TokenKind.STAR_EQUAL, _symbol("*=")),
    (TokenKind.SLASH_EQUAL, _symbol("/=")),
    (TokenKind.PLUS_EQUAL, _symbol("+=")),
    (TokenKind.DASH_EQUAL, _symbol("-=")),

    (TokenKind.STAR, _symbol("*")),
    (TokenKind.SLASH, _symbol("/")),
    (TokenKind.PLUS, _symbol("+")),
    (TokenKind.DASH, _symbol("-")),
    (TokenKind.LEFT_ANGLE, _symbol("<")),
    (TokenKind.RIGHT_ANGLE, _symbol(">")),

    (TokenKind.COMMA, _symbol(",")),
    (TokenKind.DOT, _symbol(".")),
    (TokenKind.COLON, _symbol(":")),
    (TokenKind.SEMICOLON, _symbol(";")),
    (TokenKind.EQUAL, _symbol("=")),

    (TokenKind.STRING, re.compile(r"\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'")),
    (TokenKind.IDENTIFIER, re.compile(r"[a-zA-Z_]\w*")),

    (TokenKind.SPACE, re.compile(r" +")),
    (TokenKind.NEWLINE, re.compile(r"\r?\n")),
    (TokenKind.COMMENT, re.compile(r"#[^\r\n]*")),
    (TokenKind.ERROR, re.compile(r".", re.DOTALL)),
]

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}
_ESCAPE = re.compile(r"\\(.)")


def decode_string(text):
    """Strips the quotes off a String token's text and resolves its backslash escapes. Unknown escapes stand for the
    escaped character itself (\\" is ", \\\\ is \\).
    """
    return _ESCAPE.sub(lambda match: ESCAPES.get(match.group(1), match.group(1)), text[1:-1])


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    position: int = None
    length: int = None

    def text(self, source):
        """The slice of source this token spans ("" for EndOfInput)."""
        if self.position is None:
            return ""
        return source[self.position:self.position + self.length]

    def __repr__(self):
        if self.position is None:
            return self.kind.value
        return f"{self.kind.value}({self.position}, {self.length})"


END_OF_INPUT = Token(TokenKind.END_OF_INPUT)


class Lexer:
    """Pull-based tokenizer. Call next() for each token; once the source is exhausted (and all indentation has been
    closed), next() returns END_OF_INPUT forever.
    """

    def __init__(self, source, errors=None):
        self.source = source
        self.errors = errors

        self.position = 0
        self.indentation = 0     # current indentation width, in columns
        self.at_line_start = True
        self._queue = deque()    # pending Indent/Dedent tokens (and the token that triggered them)

    def _match(self):
        for kind, pattern in RULES:
            match = pattern.match(self.source, self.position)
            if match:
                return kind, match.end() - match.start()

        raise AssertionError("the Error rule matches any character")  # unreachable

    def _scan(self):
        """Consumes and returns the next raw token (spaces and comments included)."""
        kind, length = self._match()
        token = Token(kind, self.position, length)
        self.position += length
        return token

    def _is_blank_ahead(self):
        """Whether the rest of the current line is empty or a comment."""
        rest = self.source[self.position:]
        return not rest or rest[0] in "\r\n#"

    def _indent(self, position, width):
        """Queues the Indent/Dedent run that moves the indentation to width. Reports a lexical fault (and leaves the
        indentation unchanged) if the change is not a multiple of INDENT_UNIT.
        """
        diff = width - self.indentation

        if diff % INDENT_UNIT != 0:
            if self.errors is not None:
                msg = f"bad indentation: width should be a multiple of {INDENT_UNIT}"
                self.errors.add(msg, position, abs(diff), "lexical")
            return

        kind = TokenKind.INDENT if diff > 0 else TokenKind.DEDENT
        for __ in range(abs(diff) // INDENT_UNIT):
            self._queue.append(Token(kind, position, INDENT_UNIT))

        self.indentation = width

    def next(self):
        """Returns the next token."""
        if self._queue:
            return self._queue.popleft()

        while self.position < len(self.source):
            token = self._scan()

            if self.at_line_start:
                if token.kind is TokenKind.COMMENT:
                    continue
                elif token.kind is TokenKind.NEWLINE:
                    return token  # blank line: passes through, indentation untouched
                elif token.kind is TokenKind.SPACE:
                    if self._is_blank_ahead():
                        continue
                    self.at_line_start = False
                    self._indent(token.position, token.length)
                    if self._queue:
                        return self._queue.popleft()
                    continue

                self.at_line_start = False
                if self.indentation > 0:
                    self._indent(token.position, 0)
                    self._queue.append(token)
                    return self._queue.popleft()
                return token

            if token.kind is TokenKind.NEWLINE:
                self.at_line_start = True
                return token

            if token.kind not in (TokenKind.SPACE, TokenKind.COMMENT):
                return token

        if self.indentation > 0:
            self._indent(len(self.source), 0)
            return self._queue.popleft()

        return END_OF_INPUT

    def __iter__(self):
        """Yields every remaining token, up to and including END_OF_INPUT."""
        while True:
            token = self.next()
            yield token
            if token.kind is TokenKind.END_OF_INPUT:
                return


def tokenize(source, errors=None):
    """Returns the complete token list of source, ending with a single END_OF_INPUT."""
    return list(Lexer(source, errors))
