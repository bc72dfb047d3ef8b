"""Reduction of parenthesised groups, innermost first."""

from __future__ import annotations

import re

from ledgercalc.formulas.arithmetic import ArithmeticEvaluator
from ledgercalc.formulas.diagnostics import (
    EMPTY_GROUP,
    UNBALANCED_PARENTHESES,
    UNRESOLVED_CALL,
    Diagnostics,
)
from ledgercalc.formulas.fixpoint import run_to_fixpoint
from ledgercalc.formulas.patterns import FormulaPatterns, within


class ParenResolver:
    """Replaces each innermost ``( ... )`` group by its arithmetic value.

    The group and the whitespace framing it are replaced as a whole, so
    ``2 * (3 + 4) + 1`` becomes ``2 *7+ 1`` after one pass.

    A group opened right after ``%NAME`` is the argument list of a call
    the name stage could not match yet; it is left in place for the next
    name pass instead of being evaluated as arithmetic.

    With *auto_eval* off, only groups inside an ``%EVAL(...)`` are
    reduced; the others are kept as written.
    """

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

    def resolve(self, text: str, diagnostics: Diagnostics) -> str:
        """Reduce groups until a pass changes nothing."""
        return run_to_fixpoint(
            lambda current: self.reduce_once(current, diagnostics),
            text,
            diagnostics,
            stage="parentheses",
            max_iterations=self._max_iterations,
        )

    def has_pending_calls(self, text: str) -> bool:
        """Whether *text* still holds ``%NAME(`` call syntax."""
        return self._patterns.function_start.search(text) is not None

    def check_balanced(self, text: str, diagnostics: Diagnostics) -> bool:
        """Record a diagnostic for parentheses left after every round.

        Mismatched parentheses are ``unbalanced_parentheses``; balanced
        ones still opening a ``%NAME(`` call are ``unresolved_call``.
        """
        depth = 0
        for ch in text:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth < 0:
                    break
        if depth:
            diagnostics.add(UNBALANCED_PARENTHESES, f"unbalanced parentheses left in {text!r}")
            return False
        if self.has_pending_calls(text):
            diagnostics.add(UNRESOLVED_CALL, f"unresolved function call left in {text!r}")
            return False
        return True

    def reduce_once(self, text: str, diagnostics: Diagnostics) -> str:
        spans = [] if self._auto_eval else self._patterns.eval_spans(text)

        def on_group(match: re.Match[str]) -> str:
            if match.group("fn"):
                return match.group(0)
            if not self._auto_eval and not within(
                match.start("body") - 1, match.end("body") + 1, spans
            ):
                return match.group(0)
            body = match.group("body").strip()
            if not body:
                diagnostics.add(EMPTY_GROUP, f"empty parentheses in {text!r}")
                return ""
            return self._arithmetic.evaluate(body, diagnostics)

        return self._patterns.group.sub(on_group, text)
