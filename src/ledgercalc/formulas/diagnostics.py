"""Append-only diagnostics channel shared by every evaluation stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Diagnostic codes
UNKNOWN_FUNCTION = "unknown_function"
WRONG_ARG_COUNT = "wrong_arg_count"
FUNCTION_FAILED = "function_failed"
DIVISION_BY_ZERO = "division_by_zero"
EMPTY_GROUP = "empty_group"
UNBALANCED_PARENTHESES = "unbalanced_parentheses"
UNRESOLVED_CALL = "unresolved_call"
CYCLE_DETECTED = "cycle_detected"
ITERATION_LIMIT = "iteration_limit"


@dataclass(frozen=True)
class Diagnostic:
    """A single anomaly noticed while evaluating a formula."""

    code: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class Diagnostics:
    """Ordered list of :class:`Diagnostic` records.

    Entries are only ever appended.  Recording a diagnostic never raises
    and never interrupts the evaluation that produced it.
    """

    entries: list[Diagnostic] = field(default_factory=list)

    def add(self, code: str, message: str) -> Diagnostic:
        entry = Diagnostic(code=code, message=message)
        self.entries.append(entry)
        logger.debug("formula diagnostic [%s] %s", code, message)
        return entry

    @property
    def messages(self) -> list[str]:
        """The human-readable messages, in the order they were recorded."""
        return [entry.message for entry in self.entries]

    def codes(self) -> list[str]:
        return [entry.code for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __iter__(self):
        return iter(self.entries)
