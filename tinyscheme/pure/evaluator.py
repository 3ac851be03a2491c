"""Direct interpreter for tinyscheme Values: evaluate walks the data the reader produced, apply calls procedures.

Evaluation rules:
    1. nil, numbers and procedures evaluate to themselves
    2. symbols are looked up in the environment chain
    3. a pair (op . operands) is a special form if op is one of the SPECIAL_FORMS keywords, otherwise op and then every
       operand (left to right) are evaluated and the resulting procedure is applied to the argument list
    4. primitives that take their operands unevaluated (load) receive them as written, after op is evaluated

There is no tail-call elimination: every nested application is a nested Python call, so deep recursion ends in a
RecursionError, which the session reports as a tinyscheme error.
"""

from tinyscheme.lang.error import ArityError, MalformedSyntaxError, NotAProcedureError
from tinyscheme.pure.values import NIL, Closure, Pair, Primitive, Symbol, from_iterable, is_true


def evaluate(expr, env):
    """Evaluates expr in env and returns the resulting Value. Errors are raised as GenericExceptions."""
    if isinstance(expr, Symbol):
        return env.lookup(expr.name)
    if not isinstance(expr, Pair):
        return expr

    op, operands = expr.first, expr.rest
    if isinstance(op, Symbol) and op.name in SPECIAL_FORMS:
        return SPECIAL_FORMS[op.name](operands, env)

    proc = evaluate(op, env)
    operands = _proper(expr, operands)
    if isinstance(proc, Primitive) and not proc.evaluates_args:
        return proc.fn(from_iterable(operands), env)

    args = [evaluate(operand, env) for operand in operands]
    return apply(proc, from_iterable(args), env)


def apply(proc, args, env):
    """Applies proc to the already-evaluated argument list args. env is the caller's environment, which is only
    visible to primitives.
    """
    if isinstance(proc, Primitive):
        return proc.fn(args, env)
    if not isinstance(proc, Closure):
        raise NotAProcedureError(proc)

    frame = proc.env.new_child()
    remaining = args
    for param in proc.params:
        if not isinstance(remaining, Pair):
            raise ArityError(proc, f"at least {len(proc.params)}", len(args))
        frame.define(param.name, remaining.first)
        remaining = remaining.rest  # arguments past the last parameter are ignored

    return evaluate(proc.body, frame)


def _proper(form, operands):
    """Returns operands as a Python list, raising MalformedSyntaxError if it is not a proper list."""
    if operands is not NIL and (not isinstance(operands, Pair) or operands.tail() is not NIL):
        raise MalformedSyntaxError("'{}' is not a proper list", form, diagnosis=False)
    return list(operands)


def _operands(keyword, operands, least, most=None):
    """Checks the operand count of a special form and returns the operands as a Python list."""
    items = _proper(Pair(Symbol(keyword), operands), operands)
    most = least if most is None else most
    if not least <= len(items) <= most:
        expected = str(least) if least == most else f"{least} to {most}"
        msg = "'{}' expects {} operand(s), got {}"
        raise MalformedSyntaxError(msg, (keyword, expected, len(items)), diagnosis=False)
    return items


def eval_quote(operands, env):
    datum, = _operands("quote", operands, 1)
    return datum


def eval_if(operands, env):
    test, consequent, *alternate = _operands("if", operands, 2, 3)
    if is_true(evaluate(test, env)):
        return evaluate(consequent, env)
    if alternate:
        return evaluate(alternate[0], env)
    return NIL


def eval_define(operands, env):
    name, value_expr = _operands("define", operands, 2)
    if not isinstance(name, Symbol):
        raise MalformedSyntaxError("'define' expects a symbol to bind, got '{}'", name, diagnosis=False)

    env.define(name.name, evaluate(value_expr, env))
    return name


def eval_lambda(operands, env):
    params, body = _operands("lambda", operands, 2)
    if params is not NIL and not isinstance(params, Pair):
        raise MalformedSyntaxError("'lambda' expects a parameter list, got '{}'", params, diagnosis=False)

    for param in _proper(params, params):
        if not isinstance(param, Symbol):
            raise MalformedSyntaxError("'lambda' parameter '{}' is not a symbol", param, diagnosis=False)

    return Closure(params, body, env)


SPECIAL_FORMS = {
    "quote": eval_quote,
    "if": eval_if,
    "define": eval_define,
    "lambda": eval_lambda,
}
