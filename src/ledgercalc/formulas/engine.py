"""Formula evaluation entry point.

Sequences the stages over one formula::

    detect -> names (fixpoint) -> parentheses (fixpoint)
           -> final arithmetic pass -> escapes

and threads a single :class:`~ledgercalc.formulas.diagnostics.Diagnostics`
through all of them.  ``evaluate`` always returns a string, possibly with
gaps where a call failed, plus the list of diagnostic messages.

The final arithmetic pass is skipped when ``auto_eval`` is off; only
``%EVAL(...)`` bodies are then reduced.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Iterable, NamedTuple, Optional, Union

from ledgercalc.formulas.arithmetic import ArithmeticEvaluator
from ledgercalc.formulas.detector import detect
from ledgercalc.formulas.diagnostics import CYCLE_DETECTED, ITERATION_LIMIT, Diagnostics
from ledgercalc.formulas.escapes import EscapeResolver
from ledgercalc.formulas.fn_builtin import BUILTIN_FUNCTIONS
from ledgercalc.formulas.functions import FunctionDescriptor, FunctionTable
from ledgercalc.formulas.names import NameResolver
from ledgercalc.formulas.parens import ParenResolver
from ledgercalc.formulas.patterns import FormulaPatterns
from ledgercalc.logging import EventType, emit_info, emit_warning

if TYPE_CHECKING:
    from ledgercalc.config import EngineConfig

logger = logging.getLogger(__name__)

Functions = Optional[Union[FunctionTable, Iterable[FunctionDescriptor]]]


class EvalResult(NamedTuple):
    """Result text and advisory diagnostic messages."""

    result: str
    diagnostics: list[str]


class FormulaEngine:
    """Compiled patterns plus the stages built on them.

    An engine holds no per-call state and can be shared between threads.

    Args:
        config: An :class:`~ledgercalc.config.EngineConfig`, a plain dict
            of configuration values, or ``None`` for the defaults.

    Raises:
        FormulaPatternError: If a pattern cannot be compiled.
        FormulaConfigError: If *config* does not validate.
    """

    def __init__(self, config: EngineConfig | dict[str, Any] | None = None) -> None:
        from ledgercalc.config import EngineConfig, make_engine_config

        if config is None:
            config = EngineConfig()
        elif isinstance(config, dict):
            config = make_engine_config(config)
        self.config = config

        self.patterns = FormulaPatterns.compile(
            shortcut_letters=config.shortcut_letters,
            arg_separators=config.arg_separators,
        )
        self.arithmetic = ArithmeticEvaluator(
            self.patterns,
            decimal_separator=config.decimal_separator,
            thousand_separator=config.thousand_separator,
        )
        self.names = NameResolver(
            self.patterns,
            self.arithmetic,
            max_iterations=config.max_iterations,
            auto_eval=config.auto_eval,
        )
        self.parens = ParenResolver(
            self.patterns,
            self.arithmetic,
            max_iterations=config.max_iterations,
            auto_eval=config.auto_eval,
        )
        self.escapes = EscapeResolver(self.patterns)

    def function_table(self, functions: Functions = None) -> FunctionTable:
        """Normalise *functions* into the table one evaluation uses.

        Builtins are appended when enabled; entries of *functions* win on
        name clashes.
        """
        if functions is None:
            table = FunctionTable(shortcuts=dict(self.config.shortcuts))
        elif isinstance(functions, FunctionTable):
            table = functions
        else:
            table = FunctionTable.of(functions, shortcuts=self.config.shortcuts)
        if self.config.builtins:
            table = table.merged_with(BUILTIN_FUNCTIONS)
        return table

    def evaluate(
        self,
        formula: str | bytes,
        functions: Functions = None,
        user_data: Any = None,
    ) -> EvalResult:
        """Evaluate *formula*.

        Args:
            formula: Text to evaluate.  Only text starting with ``=`` is
                treated as a formula; ``'=`` protects a literal.
            functions: The functions formulas may call.
            user_data: Passed through unchanged to every callback.

        Returns:
            ``(result, diagnostics)``.
        """
        detection = detect(formula)
        if not detection.is_formula:
            return EvalResult(detection.text, [])

        table = self.function_table(functions)
        diagnostics = Diagnostics()
        text = detection.text

        text, rounds = self._run_rounds(text, table, user_data, diagnostics)

        self.parens.check_balanced(text, diagnostics)
        if self.config.auto_eval:
            text = self.arithmetic.evaluate(text, diagnostics)
        text = self.escapes.resolve(text)

        logger.debug("%r -> %r (%d rounds)", detection.text, text, rounds)
        result = EvalResult(text, diagnostics.messages)
        _emit_events(detection.text, result, diagnostics)
        return result

    def _run_rounds(
        self,
        text: str,
        table: FunctionTable,
        user_data: Any,
        diagnostics: Diagnostics,
    ) -> tuple[str, int]:
        """Alternate the name and parenthesis stages.

        Another round runs only for ``%NAME(`` calls left in the text,
        i.e. calls whose arguments held a group.  A round ending on a
        string already seen is a cycle; rounds are capped
        at ``max_iterations`` like the stages themselves.
        """
        seen = {text}
        rounds = 0
        while True:
            rounds += 1
            before = text
            text = self.names.resolve(text, table, user_data, diagnostics)
            text = self.parens.resolve(text, diagnostics)
            if not self.parens.has_pending_calls(text):
                return text, rounds
            if text == before and self.patterns.function.search(text) is None:
                # stuck: left to check_balanced
                return text, rounds
            if text in seen:
                diagnostics.add(
                    CYCLE_DETECTED,
                    f"rounds: expansion cycles back to {text!r}; stopped after "
                    f"{rounds} rounds",
                )
                return text, rounds
            if rounds >= self.config.max_iterations:
                diagnostics.add(
                    ITERATION_LIMIT,
                    f"rounds: no fixpoint after {rounds} rounds; stopped at {text!r}",
                )
                return text, rounds
            seen.add(text)


def _emit_events(formula: str, result: EvalResult, diagnostics: Diagnostics) -> None:
    for diagnostic in diagnostics:
        emit_warning(
            EventType.formula_diagnostic,
            diagnostic.message,
            {"formula": formula},
            error_code=diagnostic.code,
        )
    emit_info(
        EventType.formula_evaluated,
        f"={formula} -> {result.result!r}",
        {
            "formula": formula,
            "result": result.result,
            "diagnostic_count": len(diagnostics),
        },
    )


# ---------------------------------------------------------------------------
# Module-level convenience
# ---------------------------------------------------------------------------

_default_engine: FormulaEngine | None = None
_default_engine_lock = threading.Lock()


def default_engine() -> FormulaEngine:
    """Return the process-wide engine built from the default configuration."""
    global _default_engine
    if _default_engine is None:
        with _default_engine_lock:
            if _default_engine is None:
                _default_engine = FormulaEngine()
    return _default_engine


def evaluate(
    formula: str | bytes,
    functions: Functions = None,
    user_data: Any = None,
) -> EvalResult:
    """Evaluate *formula* with the default engine."""
    return default_engine().evaluate(formula, functions, user_data)
