"""Tree-walking evaluator for the snek language.

Scoping is dynamic and block-based. A single binding table maps names to bindings tagged with the block depth they were
created at; closing a block drops the bindings of its depth. Assignment never shadows: assigning a name that is
already bound (at any depth) updates that binding, so a nested block can change an outer variable. Only function
parameters are declared, hiding an outer binding of the same name for the duration of the call.

Functions are their Def nodes and capture nothing: free names are looked up in the table as it is when the function
runs.

Statements return an Outcome rather than unwinding with exceptions: NORMAL, Returned(value), BROKE or CONTINUED. Blocks
stop at the first outcome that is not NORMAL and hand it to their caller; loops consume BROKE/CONTINUED and calls consume
Returned.
"""

from dataclasses import dataclass

from snek.lang import tree
from snek.lang.error import Diagnostics, SnekRuntimeError


@dataclass
class Binding:
    depth: int
    value: object


class Environment:
    """The binding table. Each name maps to a stack of bindings; only the last one is visible."""

    def __init__(self):
        self.depth = 0
        self.bindings = {}

    def open_scope(self):
        self.depth += 1

    def close_scope(self):
        """Drops every binding created at the current depth."""
        for name in list(self.bindings):
            stack = self.bindings[name]
            while stack and stack[-1].depth == self.depth:
                stack.pop()
            if not stack:
                del self.bindings[name]
        self.depth -= 1

    def lookup(self, name):
        """Returns the value bound to name. Raises KeyError if name is unbound."""
        return self.bindings[name][-1].value

    def assign(self, name, value):
        """Updates the visible binding of name, or creates one at the current depth if name is unbound."""
        if name in self.bindings:
            self.bindings[name][-1].value = value
        else:
            self.bindings[name] = [Binding(self.depth, value)]

    def declare(self, name, value):
        """Creates a binding of name at the current depth, hiding any outer one until this scope closes."""
        stack = self.bindings.setdefault(name, [])
        if stack and stack[-1].depth == self.depth:
            stack[-1].value = value
        else:
            stack.append(Binding(self.depth, value))

    def __contains__(self, name):
        return name in self.bindings

    def __repr__(self):
        visible = {name: stack[-1].value for name, stack in self.bindings.items()}
        return f"Environment(depth={self.depth}, {visible!r})"


class Outcome:
    """How a statement finished. NORMAL, BROKE and CONTINUED are singletons; returns are Returned instances."""

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name


NORMAL = Outcome("NORMAL")
BROKE = Outcome("BROKE")
CONTINUED = Outcome("CONTINUED")


class Returned(Outcome):

    def __init__(self, value):
        super().__init__("Returned")
        self.value = value

    def __repr__(self):
        return f"Returned({self.value!r})"


def is_truthy(value):
    """False and None are falsy; everything else (0, "", [] and {} included) is truthy."""
    return value is not False and value is not None


def is_identical(left, right):
    """`is` semantics: containers and functions compare by reference, everything else by type and value."""
    if isinstance(left, (list, dict, tree.Def)) or isinstance(right, (list, dict, tree.Def)):
        return left is right
    if callable(left) or callable(right):
        return left is right
    return type(left) is type(right) and left == right


def type_name(value):
    if value is None:
        return "None"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, float):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, list):
        return "array"
    elif isinstance(value, dict):
        return "record"
    elif isinstance(value, tree.Def) or callable(value):
        return "function"
    return type(value).__name__


ARITHMETIC = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": lambda a, b: a / b,
}
COMPARISON = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
}


class Evaluator:
    """Runs programs against one environment. primitives (name: value, usually host callables) are bound before
    anything runs. Runtime errors are recorded in errors, one per failing top-level statement.
    """

    def __init__(self, primitives=None, errors=None):
        self.environment = Environment()
        self.errors = errors if errors is not None else Diagnostics()

        for name, value in (primitives or {}).items():
            self.environment.assign(name, value)

    def run(self, program):
        """Executes program's statements in order. A failing statement is reported and the next one still runs."""
        for statement in program.statements:
            self.run_statement(statement)

    def run_statement(self, statement):
        """Executes one top-level statement, recording (instead of raising) any runtime error. Returns whether the
        statement completed.
        """
        depth = self.environment.depth
        try:
            outcome = self.execute(statement)
            if outcome is BROKE or outcome is CONTINUED:
                keyword = "break" if outcome is BROKE else "continue"
                raise SnekRuntimeError(f"'{keyword}' outside loop", statement)
        except SnekRuntimeError as error:
            if error.node is None:
                error = SnekRuntimeError(error.message, statement)
            self.errors.add_error(error, "runtime")
            return False
        except RecursionError:
            # scopes may have been left open while unwinding at the recursion limit
            while self.environment.depth > depth:
                self.environment.close_scope()
            self.errors.add_error(SnekRuntimeError("maximum recursion depth exceeded", statement), "runtime")
            return False

        return True

    # -----------------------------------------------------------------------------------------------------------------
    # statements

    def execute(self, node):
        """Executes a statement (or an expression statement) and returns its Outcome."""
        method = getattr(self, f"_execute_{type(node).__name__.lower()}", None)
        if method is None:
            self.evaluate(node)
            return NORMAL
        return method(node)

    def execute_block(self, block):
        self.environment.open_scope()
        try:
            for statement in block.statements:
                outcome = self.execute(statement)
                if outcome is not NORMAL:
                    return outcome
            return NORMAL
        finally:
            self.environment.close_scope()

    def _execute_block(self, node):
        return self.execute_block(node)

    def _execute_def(self, node):
        self.environment.assign(node.name, node)
        return NORMAL

    def _execute_if(self, node):
        if is_truthy(self.evaluate(node.condition)):
            return self.execute_block(node.then)
        elif node.otherwise is not None:
            return self.execute(node.otherwise)
        return NORMAL

    def _execute_while(self, node):
        while is_truthy(self.evaluate(node.condition)):
            outcome = self.execute_block(node.body)
            if outcome is BROKE:
                break
            elif isinstance(outcome, Returned):
                return outcome
        return NORMAL

    def _execute_return(self, node):
        return Returned(None if node.value is None else self.evaluate(node.value))

    def _execute_break(self, node):
        return BROKE

    def _execute_continue(self, node):
        return CONTINUED

    # -----------------------------------------------------------------------------------------------------------------
    # expressions

    def evaluate(self, node):
        """Evaluates an expression and returns its value."""
        method = getattr(self, f"_evaluate_{type(node).__name__.lower()}", None)
        if method is None:
            raise SnekRuntimeError(f"cannot evaluate {type(node).__name__} as an expression", node)
        return method(node)

    def _evaluate_number(self, node):
        return node.value

    def _evaluate_string(self, node):
        return node.value

    def _evaluate_boolean(self, node):
        return node.value

    def _evaluate_noneliteral(self, node):
        return None

    def _evaluate_array(self, node):
        return [self.evaluate(element) for element in node.elements]

    def _evaluate_record(self, node):
        return {key: self.evaluate(value) for key, value in node.properties}

    def _evaluate_identifier(self, node):
        try:
            return self.environment.lookup(node.name)
        except KeyError:
            raise SnekRuntimeError(f"name '{node.name}' is not defined", node)

    def _evaluate_member(self, node):
        return self._get_item(node, self.evaluate(node.target), node.name)

    def _evaluate_index(self, node):
        return self._get_item(node, self.evaluate(node.target), self.evaluate(node.index))

    def _evaluate_unary(self, node):
        operand = self.evaluate(node.operand)
        if node.operator == "not":
            return not is_truthy(operand)

        if not isinstance(operand, float):
            raise SnekRuntimeError(f"bad operand type for unary -: '{type_name(operand)}'", node)
        return -operand

    def _evaluate_binary(self, node):
        if node.operator == "and":
            left = self.evaluate(node.left)
            return self.evaluate(node.right) if is_truthy(left) else left
        elif node.operator == "or":
            left = self.evaluate(node.left)
            return left if is_truthy(left) else self.evaluate(node.right)

        left, right = self.evaluate(node.left), self.evaluate(node.right)

        if node.operator == "is":
            return is_identical(left, right)
        elif node.operator == "is not":
            return not is_identical(left, right)

        return self._apply(node, node.operator, left, right)

    def _apply(self, node, operator, left, right):
        """Applies an arithmetic or ordering operator with host semantics, turning host errors into runtime errors."""
        operation = ARITHMETIC.get(operator) or COMPARISON[operator]

        # bools are ints to the host; keep True + 1 an error
        if isinstance(left, bool) or isinstance(right, bool):
            left_type, right_type = type_name(left), type_name(right)
            raise SnekRuntimeError(f"unsupported operand types for {operator}: '{left_type}' and '{right_type}'", node)

        try:
            return operation(left, right)
        except ZeroDivisionError:
            raise SnekRuntimeError("division by zero", node)
        except TypeError:
            left_type, right_type = type_name(left), type_name(right)
            raise SnekRuntimeError(f"unsupported operand types for {operator}: '{left_type}' and '{right_type}'", node)

    def _evaluate_assign(self, node):
        value = self.evaluate(node.value)
        target = node.target

        if isinstance(target, tree.Identifier):
            if node.operator != "=":
                value = self._apply(node, node.operator[0], self.evaluate(target), value)
            self.environment.assign(target.name, value)
            return value

        # container and key are evaluated once, for both the read and the write
        if isinstance(target, tree.Index):
            container, key = self.evaluate(target.target), self.evaluate(target.index)
        elif isinstance(target, tree.Member):
            container, key = self.evaluate(target.target), target.name
        else:
            raise SnekRuntimeError(f"cannot assign to {type(target).__name__}", target)

        if node.operator != "=":
            value = self._apply(node, node.operator[0], self._get_item(target, container, key), value)
        self._set_item(target, container, key, value)
        return value

    def _evaluate_call(self, node):
        function = self.evaluate(node.callee)
        arguments = [self.evaluate(argument) for argument in node.arguments]

        if isinstance(function, tree.Def):
            return self.call(function, arguments, node)
        elif callable(function):
            try:
                return function(*arguments)
            except TypeError as error:  # wrong number of arguments to a primitive
                raise SnekRuntimeError(str(error), node)

        raise SnekRuntimeError(f"'{type_name(function)}' is not callable", node.callee)

    def call(self, function, arguments, node=None):
        """Calls a snek function (its Def node) with already-evaluated arguments and returns its result."""
        if len(arguments) > len(function.params):
            msg = f"{function.name}() takes {len(function.params)} arguments but {len(arguments)} were given"
            raise SnekRuntimeError(msg, node)

        self.environment.open_scope()
        try:
            for idx, param in enumerate(function.params):
                if idx < len(arguments):
                    value = arguments[idx]
                elif param.default is not None:
                    value = self.evaluate(param.default)
                else:
                    raise SnekRuntimeError(f"{function.name}() missing argument '{param.name}'", node)
                self.environment.declare(param.name, value)

            outcome = self.execute_block(function.body)
        finally:
            self.environment.close_scope()

        if isinstance(outcome, Returned):
            return outcome.value
        elif outcome is not NORMAL:
            keyword = "break" if outcome is BROKE else "continue"
            raise SnekRuntimeError(f"'{keyword}' outside loop", node)
        return None

    # -----------------------------------------------------------------------------------------------------------------
    # indexing

    def _check_index(self, node, container, index):
        """Returns index as a valid int position into container (an array or a string)."""
        if isinstance(index, bool) or not isinstance(index, float) or not index.is_integer():
            raise SnekRuntimeError(f"{type_name(container)} index must be an integer, not {index!r}", node)

        position = int(index)
        if not 0 <= position < len(container):
            raise SnekRuntimeError(f"{type_name(container)} index {position} out of range", node)
        return position

    def _get_item(self, node, container, key):
        if isinstance(container, (list, str)):
            return container[self._check_index(node, container, key)]
        elif isinstance(container, dict):
            if key not in container:
                raise SnekRuntimeError(f"record has no property {key!r}", node)
            return container[key]

        raise SnekRuntimeError(f"'{type_name(container)}' is not indexable", node)

    def _set_item(self, node, container, key, value):
        if isinstance(container, list):
            container[self._check_index(node, container, key)] = value
        elif isinstance(container, dict):
            if not isinstance(key, str):
                raise SnekRuntimeError(f"record keys must be strings, not {type_name(key)}", node)
            container[key] = value
        else:
            raise SnekRuntimeError(f"'{type_name(container)}' does not support item assignment", node)
