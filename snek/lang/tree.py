"""Abstract syntax tree for the snek language.

Every node is a frozen dataclass. position/length give the node's span in the source; they are keyword-only and do not
take part in equality, so trees parsed from differently formatted sources compare equal.

```
<program>    ::= <statement>*
<statement>  ::= Def | If | While | Return | Break | Continue | Block | <expression>
<expression> ::= Assign | Binary | Unary | Call | Member | Index
               | Identifier | Number | String | Boolean | NoneLiteral | Array | Record
```
"""

from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class Node:
    position: int = field(default=0, compare=False, repr=False, kw_only=True)
    length: int = field(default=0, compare=False, repr=False, kw_only=True)

    @property
    def label(self):
        """One-line description used by display (the node's name plus any scalar fields)."""
        scalars = [f"{f.name}={getattr(self, f.name)!r}" for f in self._own_fields()
                   if not isinstance(getattr(self, f.name), (Node, tuple))]
        return f"{type(self).__name__}({', '.join(scalars)})" if scalars else type(self).__name__

    def _own_fields(self):
        return [f for f in fields(self) if f.name not in ("position", "length")]

    def children(self):
        """(field name, node) pairs of this node's direct children, in field order."""
        result = []
        for f in self._own_fields():
            value = getattr(self, f.name)
            if isinstance(value, Node):
                result.append((f.name, value))
            elif isinstance(value, tuple):
                for item in value:
                    if isinstance(item, Node):
                        result.append((f.name, item))
                    elif isinstance(item, tuple):  # Record properties: (key, expression)
                        result.append((f"{f.name}[{item[0]!r}]", item[1]))
        return result

    def display(self, indents=0):
        """Recursively displays the tree with a readable format.

        Format:
        <Node>(<scalars>)
            <field>: <Node>(<scalars>)
                ...
        """
        result = "    " * indents + self.label
        for name, child in self.children():
            child_display = child.display(indents + 1).lstrip()
            result += "\n" + "    " * (indents + 1) + f"{name}: " + child_display
        return result


@dataclass(frozen=True)
class Expression(Node):
    pass


@dataclass(frozen=True)
class Statement(Node):
    pass


# ---------------------------------------------------------------------------------------------------------------------
# expressions

@dataclass(frozen=True)
class Identifier(Expression):
    name: str


@dataclass(frozen=True)
class Number(Expression):
    value: float


@dataclass(frozen=True)
class String(Expression):
    value: str


@dataclass(frozen=True)
class Boolean(Expression):
    value: bool


@dataclass(frozen=True)
class NoneLiteral(Expression):
    pass


@dataclass(frozen=True)
class Array(Expression):
    elements: tuple = ()


@dataclass(frozen=True)
class Record(Expression):
    properties: tuple = ()  # ((key, Expression), ...), in literal order


@dataclass(frozen=True)
class Member(Expression):
    target: Expression
    name: str


@dataclass(frozen=True)
class Index(Expression):
    target: Expression
    index: Expression


@dataclass(frozen=True)
class Call(Expression):
    callee: Expression
    arguments: tuple = ()


@dataclass(frozen=True)
class Unary(Expression):
    operator: str  # "not" or "-"
    operand: Expression


@dataclass(frozen=True)
class Binary(Expression):
    operator: str  # or, and, is, is not, <, >, <=, >=, +, -, *, /
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Assign(Expression):
    operator: str  # =, +=, -=, *=, /=
    target: Expression
    value: Expression


# ---------------------------------------------------------------------------------------------------------------------
# statements

@dataclass(frozen=True)
class Block(Statement):
    statements: tuple = ()


@dataclass(frozen=True)
class Param(Node):
    name: str
    default: Expression = None


@dataclass(frozen=True)
class Def(Statement):
    name: str
    params: tuple
    body: Block

    def __str__(self):
        return f"<function {self.name}>"


@dataclass(frozen=True)
class If(Statement):
    condition: Expression
    then: Block
    otherwise: Statement = None  # another If, a Block, or None


@dataclass(frozen=True)
class While(Statement):
    condition: Expression
    body: Block


@dataclass(frozen=True)
class Return(Statement):
    value: Expression = None


@dataclass(frozen=True)
class Break(Statement):
    pass


@dataclass(frozen=True)
class Continue(Statement):
    pass


@dataclass(frozen=True)
class Program(Node):
    statements: tuple = ()
