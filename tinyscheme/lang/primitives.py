"""Built-in procedures of tinyscheme and the bootstrap of the global environment.

Every primitive is called as fn(args, env): args is the evaluated argument list (a tinyscheme list) and env is the
caller's environment. Only eval and load make use of env. load is the one primitive that receives its operand
unevaluated, so that a file name can be written as a bare symbol.
"""

import math
import operator

from tinyscheme.lang.error import ArityError, GenericException, LoadError, TypeMismatchError
from tinyscheme.pure.environment import Environment
from tinyscheme.pure.evaluator import evaluate
from tinyscheme.pure.lexical import Reader
from tinyscheme.pure.values import NIL, TRUE, Number, Pair, Primitive, Symbol

PRIMITIVES = {}  # name: Primitive, in registration order


def primitive(name, evaluates_args=True):
    """Registers the decorated function as the primitive called name."""

    def register(fn):
        PRIMITIVES[name] = Primitive(name, fn, evaluates_args)
        return fn

    return register


def expect_args(name, args, count):
    """Returns args as a Python list, raising ArityError unless there are exactly count of them."""
    items = list(args)
    if len(items) != count:
        raise ArityError(name, f"exactly {count}", len(items))
    return items


def expect_number(name, value):
    if not isinstance(value, Number):
        raise TypeMismatchError(name, "a number", value)
    return value.value


def expect_pair(name, value):
    if not isinstance(value, Pair):
        raise TypeMismatchError(name, "a pair", value)
    return value


def divide(dividend, divisor):
    """Float division with IEEE-754 results for a zero divisor instead of ZeroDivisionError."""
    if divisor != 0:
        return dividend / divisor
    if dividend == 0 or math.isnan(dividend):
        return math.nan
    return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


def fold(name, op, args):
    """Left fold of op over numeric args. No arguments gives 0, one argument gives itself."""
    numbers = [expect_number(name, arg) for arg in args]
    if not numbers:
        return Number(0)

    acc, *rest = numbers
    for number in rest:
        acc = op(acc, number)
    return Number(acc)


def compare(name, op, args):
    left, right = expect_args(name, args, 2)
    return TRUE if op(expect_number(name, left), expect_number(name, right)) else NIL


@primitive("+")
def add(args, env):
    return fold("+", operator.add, args)


@primitive("-")
def subtract(args, env):
    return fold("-", operator.sub, args)


@primitive("*")
def multiply(args, env):
    return fold("*", operator.mul, args)


@primitive("/")
def div(args, env):
    return fold("/", divide, args)


@primitive("=")
def num_eq(args, env):
    return compare("=", operator.eq, args)


@primitive("<")
def num_lt(args, env):
    return compare("<", operator.lt, args)


@primitive(">")
def num_gt(args, env):
    return compare(">", operator.gt, args)


@primitive("cons")
def cons(args, env):
    first, rest = expect_args("cons", args, 2)
    return Pair(first, rest)


@primitive("car")
def car(args, env):
    pair, = expect_args("car", args, 1)
    return expect_pair("car", pair).first


@primitive("cdr")
def cdr(args, env):
    pair, = expect_args("cdr", args, 1)
    return expect_pair("cdr", pair).rest


@primitive("list")
def make_list(args, env):
    return args


@primitive("null?")
def is_null(args, env):
    value, = expect_args("null?", args, 1)
    return TRUE if value is NIL else NIL


@primitive("display")
def display(args, env):
    value, = expect_args("display", args, 1)
    print(value)
    return NIL


@primitive("eval")
def eval_(args, env):
    form, = expect_args("eval", args, 1)
    return evaluate(form, env)


@primitive("load", evaluates_args=False)
def load(args, env):
    """Evaluates every form of the file named by a bare symbol in env. Returns the last result, nil if none. An operand
    that is not a bare symbol, such as (quote example.scm), is evaluated and must give a symbol.
    """
    operand, = expect_args("load", args, 1)
    name = operand if isinstance(operand, Symbol) else evaluate(operand, env)
    if not isinstance(name, Symbol):
        raise TypeMismatchError("load", "a symbol naming a file, e.g. (load example.scm)", name)

    path = name.name
    try:
        with open(path, "r") as file:
            text = file.read()
    except OSError as error:
        raise LoadError(path, error.strerror or str(error))
    except UnicodeDecodeError:
        raise LoadError(path, "not a text file")

    result = NIL
    reader = Reader(text)
    try:
        for form in reader:
            result = evaluate(form, env)
    except GenericException as error:
        line = text.splitlines()[reader.line_num - 1].strip()
        error.add_trace(path, line, reader.line_num)
        raise
    return result


def make_global():
    """Returns a fresh global environment holding every primitive and '#t'."""
    env = Environment()
    for name, proc in PRIMITIVES.items():
        env.define(name, proc)
    env.define(TRUE.name, TRUE)
    return env
