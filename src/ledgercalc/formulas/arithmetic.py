"""Flat arithmetic over decimal operands and ``+ - * /``.

The input holds no macro and no parenthesis.  Evaluation is two
left-to-right reduction passes over an alternating operand/operator
token list:

1. ``*`` and ``/``
2. ``+`` and ``-``

each pass restarting from the head after every reduction.  A reduced
value is serialised back to integer-valued text right away (``"%.0f"``),
so precision is lost between steps: ``=7/2*2`` gives ``8``, not ``7``.
This matches the amounts historically produced by accounting templates
and is intentional.
"""

from __future__ import annotations

import logging

from ledgercalc.formulas.diagnostics import DIVISION_BY_ZERO, Diagnostics
from ledgercalc.formulas.patterns import FormulaPatterns

logger = logging.getLogger(__name__)

_OPERATORS = frozenset("+-*/")
_TIGHT = ("*", "/")
_LOOSE = ("+", "-")

# Textual concatenation.  Understood by ``apply_operator`` but never
# emitted by the tokenizer.
CONCAT = "."


class ArithmeticEvaluator:
    """Evaluates paren-free, macro-free arithmetic text.

    Args:
        patterns: The engine's compiled patterns.
        decimal_separator: Character standing for the decimal point in
            operands.
        thousand_separator: Grouping character removed from operands
            before parsing; empty for none.
    """

    def __init__(
        self,
        patterns: FormulaPatterns,
        decimal_separator: str = ".",
        thousand_separator: str = "",
    ) -> None:
        self._patterns = patterns
        self._decimal_separator = decimal_separator
        self._thousand_separator = thousand_separator

    def has_operator(self, text: str) -> bool:
        return self._patterns.operator.search(text) is not None

    def evaluate(self, text: str, diagnostics: Diagnostics) -> str:
        """Reduce *text* to a single operand.

        Text without any (unescaped) operator is returned unchanged.
        """
        if not self.has_operator(text):
            return text
        tokens = self.tokenize(text)
        self._reduce(tokens, _TIGHT, diagnostics)
        self._reduce(tokens, _LOOSE, diagnostics)
        logger.debug("arithmetic %r -> %r", text, tokens[0])
        return tokens[0]

    def tokenize(self, text: str) -> list[str]:
        """Split *text* into ``[operand, op, operand, ..., operand]``.

        Operands are stripped and may be empty (a missing operand).  An
        operator right after a backslash stays inside the operand.
        """
        tokens: list[str] = []
        begin = 0
        prev = ""
        for pos, ch in enumerate(text):
            is_operator = ch in _OPERATORS and prev != "\\"
            prev = ch
            if is_operator:
                tokens.append(text[begin:pos].strip())
                tokens.append(ch)
                begin = pos + 1
        tokens.append(text[begin:].strip())
        return tokens

    def _reduce(
        self, tokens: list[str], operators: tuple[str, ...], diagnostics: Diagnostics
    ) -> None:
        # operators sit at odd indexes, operands at even ones
        i = 1
        while i < len(tokens):
            if tokens[i] in operators:
                result = self.apply_operator(
                    tokens[i], tokens[i - 1], tokens[i + 1], diagnostics
                )
                tokens[i - 1 : i + 2] = [result]
                i = 1
            else:
                i += 2

    def apply_operator(
        self,
        oper: str,
        left: str | None,
        right: str | None,
        diagnostics: Diagnostics,
    ) -> str:
        """Apply a binary operator to two operand strings.

        A missing (``None`` or empty) operand counts as zero.  Division by
        zero records a diagnostic and yields the empty operand.
        """
        if oper == CONCAT:
            return f"{left or ''}{right or ''}"

        a = self.to_number(left)
        b = self.to_number(right)
        if oper == "+":
            value = a + b
        elif oper == "-":
            value = a - b
        elif oper == "*":
            value = a * b
        elif oper == "/":
            if b == 0:
                diagnostics.add(
                    DIVISION_BY_ZERO,
                    f"division by zero: left={left!r}, op={oper!r}, right={right!r}",
                )
                return ""
            value = a / b
        else:
            raise ValueError(f"Unknown arithmetic operator: {oper!r}")
        return format_amount(value)

    def to_number(self, text: str | None) -> float:
        """Parse the longest numeric prefix of *text*; anything else is 0."""
        if not text:
            return 0.0
        if self._thousand_separator:
            text = text.replace(self._thousand_separator, "")
        if self._decimal_separator != ".":
            text = text.replace(self._decimal_separator, ".")
        match = self._patterns.number.match(text)
        if match is None:
            return 0.0
        return float(match.group(0))


def format_amount(value: float) -> str:
    """Serialise *value* as integer-valued decimal text."""
    text = "%.0f" % value
    # -0.4 rounds to "-0"
    return "0" if text == "-0" else text
