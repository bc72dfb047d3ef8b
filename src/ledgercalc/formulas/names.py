"""Expansion of shortcuts, macros and ``%NAME(args)`` function calls.

One pass rewrites, left to right and in this order:

- shortcuts ``%A1`` (a letter aliasing a one-argument function, plus a
  row index),
- macros ``%NAME`` registered to accept no argument,
- calls ``%NAME(a, b)`` whose argument blob holds no parenthesis.

Passes repeat until the text stops changing, so a callback may return
more call syntax, and an outer call becomes matchable once its inner
calls have been replaced.

Failures stay local: an unknown name, a wrong argument count or a
callback raising :class:`~ledgercalc.formulas.errors.FormulaFunctionError`
replaces that one match with the empty string and records a diagnostic.

Arguments are reduced by the arithmetic evaluator before the callback
runs.  With automatic evaluation turned off, only the arguments of calls
sitting inside an ``%EVAL(...)`` are.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from ledgercalc.formulas.arithmetic import ArithmeticEvaluator
from ledgercalc.formulas.diagnostics import (
    FUNCTION_FAILED,
    UNKNOWN_FUNCTION,
    WRONG_ARG_COUNT,
    Diagnostics,
)
from ledgercalc.formulas.errors import ENGINE_ERRORS
from ledgercalc.formulas.fixpoint import run_to_fixpoint
from ledgercalc.formulas.functions import EvalContext, FunctionDescriptor, FunctionTable
from ledgercalc.formulas.patterns import FormulaPatterns, within

logger = logging.getLogger(__name__)


class NameResolver:
    """Rewrites every function-like token to its callback's output."""

    def __init__(
        self,
        patterns: FormulaPatterns,
        arithmetic: ArithmeticEvaluator,
        *,
        max_iterations: int = 64,
        auto_eval: bool = True,
    ) -> None:
        self._patterns = patterns
        self._arithmetic = arithmetic
        self._max_iterations = max_iterations
        self._auto_eval = auto_eval

    def resolve(
        self,
        text: str,
        functions: FunctionTable,
        user_data: Any,
        diagnostics: Diagnostics,
    ) -> str:
        """Expand *text* until a pass changes nothing."""
        return run_to_fixpoint(
            lambda current: self.expand_once(current, functions, user_data, diagnostics),
            text,
            diagnostics,
            stage="names",
            max_iterations=self._max_iterations,
        )

    def expand_once(
        self,
        text: str,
        functions: FunctionTable,
        user_data: Any,
        diagnostics: Diagnostics,
    ) -> str:
        """Run one scan-and-substitute pass over *text*."""

        def on_shortcut(match: re.Match[str]) -> str:
            letter, row = match.group(1), match.group(2)
            descriptor = functions.resolve_shortcut(letter)
            if descriptor is None:
                target = functions.shortcuts.get(letter, letter)
                return self._unknown(match.group(0), target, diagnostics)
            return self._invoke(
                match.group(0), letter, descriptor, [row], user_data, diagnostics
            )

        def on_macro(match: re.Match[str]) -> str:
            descriptor = functions.get(match.group(1))
            if descriptor is None or descriptor.is_variadic or descriptor.min_args:
                # plain prose such as "%foo"
                return match.group(0)
            return self._invoke(
                match.group(0), match.group(1), descriptor, [], user_data, diagnostics
            )

        def on_function(match: re.Match[str]) -> str:
            name, blob = match.group(1), match.group(2)
            descriptor = functions.get(name)
            if descriptor is None:
                return self._unknown(match.group(0), name, diagnostics)
            raw_args = self._patterns.separator.split(blob) if blob.strip() else []
            return self._invoke(
                match.group(0), name, descriptor, raw_args, user_data, diagnostics,
                reduce=self._auto_eval or within(match.start(), match.end(), spans),
            )

        text = self._patterns.shortcut.sub(on_shortcut, text)
        text = self._patterns.macro.sub(on_macro, text)
        spans = [] if self._auto_eval else self._patterns.eval_spans(text)
        return self._patterns.function.sub(on_function, text)

    def _unknown(self, match: str, name: str, diagnostics: Diagnostics) -> str:
        diagnostics.add(UNKNOWN_FUNCTION, f"{match}: unknown function name: {name}")
        return ""

    def _invoke(
        self,
        match: str,
        name: str,
        descriptor: FunctionDescriptor,
        raw_args: list[str],
        user_data: Any,
        diagnostics: Diagnostics,
        *,
        reduce: bool = True,
    ) -> str:
        count = len(raw_args)
        if not descriptor.accepts(count):
            diagnostics.add(
                WRONG_ARG_COUNT,
                f"{match}: expected {descriptor.arity_label} argument(s), found {count}",
            )
            return ""

        stripped = tuple(arg.strip() for arg in raw_args)
        args = tuple(
            arg
            if not reduce or i in descriptor.literal_args
            else self._arithmetic.evaluate(arg, diagnostics)
            for i, arg in enumerate(stripped)
        )
        ctx = EvalContext(
            match=match,
            name=name,
            descriptor=descriptor,
            args=args,
            raw_args=stripped,
            user_data=user_data,
            diagnostics=diagnostics,
            reduce=lambda expression: self._arithmetic.evaluate(expression, diagnostics),
            to_number=self._arithmetic.to_number,
            patterns=self._patterns,
        )
        try:
            value = descriptor.eval(ctx)
        except ENGINE_ERRORS as exc:
            diagnostics.add(FUNCTION_FAILED, f"{match}: {exc}")
            return ""
        logger.debug("%s -> %r", match, value)
        return "" if value is None else str(value)
