"""Final unescaping pass: ``\\+`` becomes ``+``, ``\\%`` becomes ``%``, ..."""

from __future__ import annotations

from ledgercalc.formulas.patterns import FormulaPatterns


class EscapeResolver:
    """Strips the backslash in front of ``+ - / * %``.

    Runs last, after every other stage has treated the backslashed
    character as plain punctuation.
    """

    def __init__(self, patterns: FormulaPatterns) -> None:
        self._patterns = patterns

    def resolve(self, text: str) -> str:
        return self._patterns.escaped.sub(r"\1", text)
