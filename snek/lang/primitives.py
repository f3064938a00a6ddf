"""Default host capabilities bound into a snek program's environment before it runs."""

from snek.lang import tree
from snek.lang.error import SnekRuntimeError
from snek.lang.runtime import type_name


def to_text(value, nested=False):
    """Returns the text print shows for value. Strings are quoted only inside arrays and records."""
    if value is None:
        return "None"
    elif value is True:
        return "True"
    elif value is False:
        return "False"
    elif isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    elif isinstance(value, str):
        return repr(value) if nested else value
    elif isinstance(value, list):
        return "[" + ", ".join(to_text(item, nested=True) for item in value) + "]"
    elif isinstance(value, dict):
        return "{" + ", ".join(f"{key}: {to_text(item, nested=True)}" for key, item in value.items()) + "}"
    elif isinstance(value, tree.Def):
        return str(value)
    elif callable(value):
        return f"<primitive {getattr(value, '__name__', 'function')}>"
    return str(value)


def default_primitives(output=print):
    """Returns the initial bindings of a program: print, len, str and the io record. output receives each printed
    line.
    """

    def snek_print(*values):
        output(" ".join(to_text(value) for value in values))

    def snek_len(value):
        if not isinstance(value, (list, str, dict)):
            raise SnekRuntimeError(f"'{type_name(value)}' has no length")
        return float(len(value))

    def snek_str(value):
        return to_text(value)

    snek_print.__name__ = "print"
    snek_len.__name__ = "len"
    snek_str.__name__ = "str"

    return {
        "print": snek_print,
        "len": snek_len,
        "str": snek_str,
        "io": {"print": snek_print},
    }
