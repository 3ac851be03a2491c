"""Runtime values of tinyscheme. Every datum the reader produces or the evaluator computes is one of:

```
<value> ::= <nil>        ; the empty list, also the false value ('#f' reads as nil)
          | <number>     ; double-precision float
          | <symbol>     ; compared by name
          | <pair>       ; (first . rest), lists are right-nested pairs terminated by nil
          | <procedure>  ; closure (params, body, captured env) or primitive (Python function)
```

str() of a value is its external representation, which is what display and the shell print.
"""

from abc import ABC
from dataclasses import dataclass
import math


class Value(ABC):
    """Superclass of every tinyscheme runtime value."""


class Nil(Value):
    """The empty list. There is exactly one instance, NIL."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __iter__(self):
        return iter(())

    def __len__(self):
        return 0

    def __repr__(self):
        return "NIL"

    def __str__(self):
        return "()"


NIL = Nil()


@dataclass(frozen=True)
class Number(Value):
    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    def __str__(self):
        if math.isfinite(self.value) and self.value.is_integer():
            return "%d" % self.value
        return "%g" % self.value


@dataclass(frozen=True)
class Symbol(Value):
    name: str

    def __str__(self):
        return self.name


TRUE = Symbol("#t")


@dataclass(eq=True)
class Pair(Value):
    """Cons cell. Iterating a pair yields the elements of the chain it starts, up to the first non-pair tail."""
    first: Value
    rest: Value

    def __iter__(self):
        node = self
        while isinstance(node, Pair):
            yield node.first
            node = node.rest

    def __len__(self):
        return sum(1 for __ in self)

    def tail(self):
        """Returns the value terminating this chain (NIL for a proper list)."""
        node = self
        while isinstance(node, Pair):
            node = node.rest
        return node

    def __str__(self):
        result = "(" + " ".join(str(item) for item in self)
        tail = self.tail()
        if tail is not NIL:
            result += " . " + str(tail)
        return result + ")"


class Procedure(Value):
    """Superclass of applicable values. Procedures compare by identity."""


class Closure(Procedure):
    """A lambda: parameter list, single body expression and the environment it was created in. The environment is
    shared with whatever else references it, so later defines in that frame are visible to the body.
    """

    def __init__(self, params, body, env):
        self.params = params
        self.body = body
        self.env = env

    def __repr__(self):
        return f"Closure(params={self.params}, body={self.body})"

    def __str__(self):
        return "<lambda>"


class Primitive(Procedure):
    """A built-in procedure. fn is called as fn(args, env) with the argument list and the caller's env. The arguments
    are evaluated first unless evaluates_args is False, in which case fn receives the operands as written.
    """

    def __init__(self, name, fn, evaluates_args=True):
        self.name = name
        self.fn = fn
        self.evaluates_args = evaluates_args

    def __repr__(self):
        return f"Primitive('{self.name}')"

    def __str__(self):
        return "<primitive>"


def is_true(value):
    """Everything except nil (which '#f' reads as) counts as true."""
    return value is not NIL


def from_iterable(items, tail=NIL):
    """Builds a right-nested pair chain from items, terminated by tail."""
    result = tail
    for item in reversed(list(items)):
        result = Pair(item, result)
    return result
