"""Bounded fixpoint iteration for the rewriting stages."""

from __future__ import annotations

import logging
from typing import Callable

from ledgercalc.formulas.diagnostics import CYCLE_DETECTED, ITERATION_LIMIT, Diagnostics

logger = logging.getLogger(__name__)


def run_to_fixpoint(
    step: Callable[[str], str],
    text: str,
    diagnostics: Diagnostics,
    *,
    stage: str,
    max_iterations: int,
) -> str:
    """Apply *step* until it stops changing the text.

    A step that yields a string seen earlier in this run is a cycle; more
    than *max_iterations* steps is runaway expansion.  Either case records
    a diagnostic and returns the latest string.

    Args:
        step: One full scan-and-substitute pass.
        text: Initial text.
        stage: Stage name, used in diagnostics.
        max_iterations: Upper bound on the number of passes.
    """
    seen = {text}
    for iteration in range(1, max_iterations + 1):
        result = step(text)
        logger.debug("%s pass %d: %r -> %r", stage, iteration, text, result)
        if result == text:
            return result
        if result in seen:
            diagnostics.add(
                CYCLE_DETECTED,
                f"{stage}: expansion cycles back to {result!r}; stopped after "
                f"{iteration} passes",
            )
            return result
        seen.add(result)
        text = result
    diagnostics.add(
        ITERATION_LIMIT,
        f"{stage}: no fixpoint after {max_iterations} passes; stopped at {text!r}",
    )
    return text
