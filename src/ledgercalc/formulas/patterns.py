"""Compiled textual patterns used by every evaluation stage.

All patterns are compiled together, once, when an engine is built.  A
pattern that fails to compile aborts construction with
:class:`~ledgercalc.formulas.errors.FormulaPatternError`; no stage ever
compiles a pattern per call.

Every "significant" marker (``%`` and the arithmetic operators) is
guarded by a ``(?<!\\\\)`` look-behind, so a backslash makes it plain
punctuation until :mod:`ledgercalc.formulas.escapes` strips the
backslash at the very end.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ledgercalc.formulas.errors import FormulaPatternError

_NAME = r"[A-Za-z][A-Za-z0-9_]*"

# Pattern sources, keyed by the attribute they populate.  ``{letters}``
# is filled with the configured shortcut letters.
PATTERN_SOURCES: dict[str, str] = {
    # %A1, %L2, %D3, %C4: group 1 = letter, group 2 = row index
    "shortcut": r"(?<!\\)%([{letters}])([0-9]+)",
    # %NAME not followed by an opening parenthesis
    "macro": r"(?<!\\)%(" + _NAME + r")\b(?!\()",
    # %NAME(args) where args holds no parenthesis
    "function": r"(?<!\\)%(" + _NAME + r")\(([^()]*)\)",
    # the start of any function call, resolved or not
    "function_start": r"(?<!\\)%" + _NAME + r"\(",
    # the start of an %EVAL( call
    "eval_start": r"(?<!\\)%EVAL\(",
    # innermost group; ``fn`` is set when the parenthesis opens a call
    "group": r"(?:(?<!\\)(?P<fn>%" + _NAME + r")|\s*)\((?P<body>[^()]*)\)\s*",
    "paren": r"[()]",
    # argument separators, filled with the configured characters
    "separator": r"[{separators}]",
    "operator": r"(?<!\\)[-+*/]",
    "escaped": r"\\([-+/*%])",
    "number": r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?",
    # IF conditions: left, comparison operator, right
    "comparison": r"^(?P<left>.*?)(?P<op><>|<=|>=|!=|[<>=!]{1,3})(?P<right>.*)$",
}


@dataclass(frozen=True)
class FormulaPatterns:
    """The full, read-only set of compiled patterns."""

    shortcut: re.Pattern[str]
    macro: re.Pattern[str]
    function: re.Pattern[str]
    function_start: re.Pattern[str]
    group: re.Pattern[str]
    paren: re.Pattern[str]
    separator: re.Pattern[str]
    operator: re.Pattern[str]
    escaped: re.Pattern[str]
    number: re.Pattern[str]
    comparison: re.Pattern[str]
    eval_start: re.Pattern[str]

    @classmethod
    def compile(
        cls, shortcut_letters: str = "ALDC", arg_separators: str = ",;"
    ) -> FormulaPatterns:
        """Compile every pattern.

        Args:
            shortcut_letters: Letters accepted as ``%<letter><row>``
                shortcuts.
            arg_separators: Characters splitting function arguments.

        Raises:
            FormulaPatternError: If any pattern fails to compile.
        """
        if not shortcut_letters or not shortcut_letters.isalpha():
            raise FormulaPatternError(
                "shortcut", shortcut_letters, "shortcut letters must be alphabetic"
            )
        if not arg_separators or set(arg_separators) & set("()%\\"):
            raise FormulaPatternError(
                "separator",
                arg_separators,
                "separators must be non-empty and exclude parentheses, '%' and '\\'",
            )
        fills = {
            "{letters}": re.escape(shortcut_letters),
            "{separators}": re.escape(arg_separators),
        }
        compiled: dict[str, re.Pattern[str]] = {}
        for name, source in PATTERN_SOURCES.items():
            for placeholder, value in fills.items():
                source = source.replace(placeholder, value)
            try:
                compiled[name] = re.compile(source)
            except re.error as exc:
                raise FormulaPatternError(name, source, str(exc)) from exc
        return cls(**compiled)

    def eval_spans(self, text: str) -> list[tuple[int, int]]:
        """Return the ``(start, end)`` extent of every ``%EVAL(...)`` in *text*.

        *start* is the position of the ``%``; *end* is one past the
        matching closing parenthesis, or the end of *text* when the call
        is never closed.
        """
        spans = []
        for match in self.eval_start.finditer(text):
            depth = 1
            pos = match.end()
            while pos < len(text) and depth:
                if text[pos] == "(":
                    depth += 1
                elif text[pos] == ")":
                    depth -= 1
                pos += 1
            spans.append((match.start(), pos))
        return spans


def within(start: int, end: int, spans: list[tuple[int, int]]) -> bool:
    """Whether ``[start, end)`` lies inside one of *spans*."""
    return any(lo <= start and end <= hi for lo, hi in spans)
