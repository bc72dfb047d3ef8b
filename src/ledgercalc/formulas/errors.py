"""Error types for formula evaluation."""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for all formula-related errors."""


class FormulaPatternError(FormulaError):
    """A fixed textual pattern could not be compiled.

    Raised once, when a :class:`~ledgercalc.formulas.engine.FormulaEngine`
    is constructed.  The engine refuses to run with a partial pattern set.

    Attributes:
        pattern_name: Name of the pattern that failed.
        source: The regular expression source text.
    """

    def __init__(self, pattern_name: str, source: str, reason: str) -> None:
        self.pattern_name = pattern_name
        self.source = source
        super().__init__(
            f"Cannot compile {pattern_name!r} pattern {source!r}: {reason}"
        )


class FormulaFunctionError(FormulaError):
    """Function table misuse, or a soft failure raised by a callback.

    Attributes:
        func_name: The function that caused the error.
    """

    def __init__(self, func_name: str, message: str | None = None) -> None:
        self.func_name = func_name
        msg = message or f"Unknown function: {func_name!r}"
        super().__init__(msg)


class FormulaConfigError(FormulaError):
    """Invalid engine configuration.

    Attributes:
        key: The offending configuration key, when known.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        full = f"Invalid formula configuration: {message}"
        if key is not None:
            full += f" (key {key!r})"
        super().__init__(full)


# Errors a callback may raise to fail a single substitution without
# aborting the whole evaluation.
ENGINE_ERRORS = (FormulaFunctionError,)
