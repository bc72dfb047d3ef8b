"""Function tables built from static lookup data.

Lets formulas be evaluated without a host application, e.g. from the
command line or in template tests.  The description is a mapping,
usually read from YAML::

    shortcuts:
      A: ACCOUNT
    functions:
      ACCOUNT:
        values: {"1": "411000", "2": "512000"}
      RATE:
        description: VAT rates
        values: {TVA: "20", REDUIT: "5.5"}
      SOLDE:
        value: "100"

An entry with ``value`` is a constant taking no argument (``%SOLDE``); an
entry with ``values`` answers ``%RATE(TVA)`` by key.  When more than one
argument is passed the key is the arguments joined with ``,``; a
``[min, max]`` arity lets one entry answer several argument counts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ledgercalc.formulas.errors import FormulaConfigError, FormulaFunctionError
from ledgercalc.formulas.functions import (
    DEFAULT_SHORTCUTS,
    Arity,
    EvalContext,
    FunctionDescriptor,
    FunctionTable,
)

Scalar = Union[str, int, float]


def _as_text(value: Scalar) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class LookupEntry(BaseModel):
    """One function of a lookup table."""

    model_config = ConfigDict(extra="forbid")

    description: str = ""
    arity: int | tuple[int, int] | None = None
    value: Scalar | None = None
    values: dict[str, Scalar] | None = None
    default: Scalar | None = None

    @field_validator("values", mode="before")
    @classmethod
    def _string_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value

    @model_validator(mode="after")
    def _one_source(self) -> LookupEntry:
        if (self.value is None) == (self.values is None):
            raise ValueError("exactly one of 'value' or 'values' is required")
        if self.value is not None and self.arity not in (None, 0):
            raise ValueError("a constant 'value' takes no argument")
        if self.values is not None and self.arity in (0, (0, 0)):
            raise ValueError("'values' needs at least one argument")
        return self

    def resolved_arity(self) -> Arity:
        if self.arity is not None:
            return self.arity
        return 0 if self.value is not None else 1

    def descriptor(self, name: str) -> FunctionDescriptor:
        return FunctionDescriptor(
            name=name,
            arity=self.resolved_arity(),
            eval=self._callback(name),
            description=self.description,
        )

    def _callback(self, name: str):
        if self.value is not None:
            constant = _as_text(self.value)
            return lambda ctx: constant

        values = {k: _as_text(v) for k, v in (self.values or {}).items()}
        default = None if self.default is None else _as_text(self.default)

        def lookup(ctx: EvalContext) -> str:
            key = ",".join(ctx.args)
            if key in values:
                return values[key]
            if default is not None:
                return default
            raise FormulaFunctionError(name, f"{name}: no value for key {key!r}")

        return lookup


class LookupFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    shortcuts: dict[str, str] | None = None
    functions: dict[str, LookupEntry] = {}


def build_lookup_table(data: dict[str, Any]) -> FunctionTable:
    """Build a :class:`FunctionTable` from a lookup description.

    Raises:
        FormulaConfigError: If the description does not validate.
        FormulaFunctionError: If a function name is invalid.
    """
    try:
        spec = LookupFile(**data)
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise FormulaConfigError(first.get("msg", str(exc)), key=key) from exc

    shortcuts = DEFAULT_SHORTCUTS if spec.shortcuts is None else spec.shortcuts
    return FunctionTable.of(
        (entry.descriptor(name) for name, entry in spec.functions.items()),
        shortcuts=shortcuts,
    )


def load_lookup_table(path: Path) -> FunctionTable:
    """Read a YAML lookup description from *path*."""
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise FormulaConfigError(f"{path} must hold a mapping")
    return build_lookup_table(data)
