"""Text-rewriting formula evaluation for accounting templates.

Public API::

    from ledgercalc.formulas import FormulaEngine, FunctionTable, evaluate
"""

from ledgercalc.formulas.diagnostics import Diagnostic, Diagnostics
from ledgercalc.formulas.engine import EvalResult, FormulaEngine, default_engine, evaluate
from ledgercalc.formulas.errors import (
    ENGINE_ERRORS,
    FormulaConfigError,
    FormulaError,
    FormulaFunctionError,
    FormulaPatternError,
)
from ledgercalc.formulas.fn_builtin import BUILTIN_FUNCTIONS
from ledgercalc.formulas.functions import (
    DEFAULT_SHORTCUTS,
    VARIADIC,
    EvalContext,
    FunctionDescriptor,
    FunctionTable,
)

__all__ = [
    "BUILTIN_FUNCTIONS",
    "DEFAULT_SHORTCUTS",
    "Diagnostic",
    "Diagnostics",
    "ENGINE_ERRORS",
    "EvalContext",
    "EvalResult",
    "FormulaConfigError",
    "FormulaEngine",
    "FormulaError",
    "FormulaFunctionError",
    "FormulaPatternError",
    "FunctionDescriptor",
    "FunctionTable",
    "VARIADIC",
    "default_engine",
    "evaluate",
]
