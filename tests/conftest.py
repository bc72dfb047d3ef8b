"""Shared fixtures."""

from __future__ import annotations

import pytest

from ledgercalc.formulas import FunctionDescriptor, FunctionTable


@pytest.fixture(autouse=True)
def _detach_event_sink():
    """Leave the module-level event sink as each test found it."""
    import ledgercalc.logging.events as mod

    old_sink = mod._sink
    yield
    mod._sink = old_sink


@pytest.fixture
def ledger_table() -> FunctionTable:
    """A small ledger: two rows, a rate lookup and a balance macro."""
    rows = {
        "1": {"ACCOUNT": "411000", "LABEL": "Customer", "DEBIT": "120", "CREDIT": "0"},
        "2": {"ACCOUNT": "445710", "LABEL": "VAT", "DEBIT": "0", "CREDIT": "20"},
    }
    table = FunctionTable()

    for column in ("ACCOUNT", "LABEL", "DEBIT", "CREDIT"):
        table.add(
            FunctionDescriptor(
                column, 1, lambda ctx, column=column: rows[ctx.args[0]][column]
            )
        )

    @table.register("DOUBLE", arity=1)
    def double(ctx):
        return str(int(ctx.args[0]) * 2)

    @table.register("RATE", arity=1)
    def rate(ctx):
        return {"TVA": "20", "ZERO": "0"}[ctx.args[0]]

    @table.register("SOLDE", arity=0)
    def solde(ctx):
        return "100"

    return table
