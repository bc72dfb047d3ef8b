"""Functions every formula can use: EVAL and IF."""

from __future__ import annotations

from ledgercalc.formulas.errors import FormulaFunctionError
from ledgercalc.formulas.functions import EvalContext, FunctionDescriptor, FunctionTable


def _fn_eval(ctx: EvalContext) -> str:
    """EVAL(expr): the argument, already reduced.

    With automatic evaluation on this only marks a grouping.  With it
    off, the body of an EVAL is the only place arithmetic is reduced.
    """
    return ctx.args[0]


def _fn_if(ctx: EvalContext) -> str:
    """IF(condition; if_true; if_false).

    The condition reaches the callback as written; each side of the
    comparison is reduced once here.
    """
    return ctx.args[1] if _is_true(ctx.args[0], ctx) else ctx.args[2]


def _is_true(condition: str, ctx: EvalContext) -> bool:
    match = ctx.patterns.comparison.match(condition)
    if match is None:
        return ctx.to_number(ctx.reduce(condition)) != 0

    left, op, right = match.group("left").strip(), match.group("op"), match.group("right").strip()
    if not left or not right:
        raise FormulaFunctionError(
            "IF", f"IF: incomplete condition: left={left!r}, op={op!r}, right={right!r}"
        )
    a = ctx.to_number(ctx.reduce(left))
    b = ctx.to_number(ctx.reduce(right))

    negate = "!" in op
    op = op.replace("!", "") or "="
    if op == "<>":
        result = a != b
    elif op == "<":
        result = a < b
    elif op == "<=":
        result = a <= b
    elif op == ">":
        result = a > b
    elif op == ">=":
        result = a >= b
    elif op in ("=", "=="):
        result = a == b
    else:
        raise FormulaFunctionError("IF", f"IF: unknown comparison operator: {op!r}")
    return not result if negate else result


BUILTIN_FUNCTIONS = FunctionTable.of(
    [
        FunctionDescriptor("EVAL", 1, _fn_eval, "Evaluate an arithmetic expression"),
        FunctionDescriptor(
            "IF",
            3,
            _fn_if,
            "Choose between two values on a comparison",
            literal_args=(0,),
        ),
    ],
    shortcuts={},
)
