"""Function descriptors, the per-call function table, and eval contexts.

The host application describes the ``%NAME(...)`` functions it is
willing to answer with a :class:`FunctionTable`.  Each entry is a
:class:`FunctionDescriptor`; when a call matches, the callback receives a
short-lived :class:`EvalContext` and returns the replacement text.

Example::

    table = FunctionTable()

    @table.register("DEBIT", arity=1)
    def debit(ctx: EvalContext) -> str:
        return ledger.debit_of_row(int(ctx.args[0]))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Union

from ledgercalc.formulas.diagnostics import Diagnostics
from ledgercalc.formulas.errors import FormulaFunctionError
from ledgercalc.formulas.patterns import FormulaPatterns


class _Variadic:
    """Sentinel type for functions accepting any number of arguments."""

    _instance: _Variadic | None = None

    def __new__(cls) -> _Variadic:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "VARIADIC"


VARIADIC = _Variadic()

# An exact count, an inclusive ``(min, max)`` range, or VARIADIC.
Arity = Union[int, tuple[int, int], _Variadic]

# Conventional shortcut letters: %A1 == %ACCOUNT(1), and so on.
DEFAULT_SHORTCUTS: dict[str, str] = {
    "A": "ACCOUNT",
    "L": "LABEL",
    "D": "DEBIT",
    "C": "CREDIT",
}


@dataclass(frozen=True)
class EvalContext:
    """Everything a callback may know about the call it is answering.

    Built immediately before the callback runs and dropped right after;
    callbacks must not keep a reference to it.
    """

    match: str
    name: str
    descriptor: FunctionDescriptor
    args: tuple[str, ...]
    raw_args: tuple[str, ...]
    user_data: Any
    diagnostics: Diagnostics
    reduce: Callable[[str], str]
    to_number: Callable[[str], float]
    patterns: FormulaPatterns

    @property
    def count(self) -> int:
        return len(self.args)


EvalFn = Callable[[EvalContext], Any]


@dataclass(frozen=True)
class FunctionDescriptor:
    """A named callback and the number of arguments it expects.

    Attributes:
        arity: Exact argument count, ``(min, max)`` inclusive range, or
            ``VARIADIC``.
        literal_args: Positions of arguments handed to the callback as
            written, without the arithmetic reduction applied to the
            others.
    """

    name: str
    arity: Arity
    eval: EvalFn
    description: str = ""
    literal_args: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if not self.name or not self.name[0].isalpha():
            raise FormulaFunctionError(
                self.name, f"Invalid function name: {self.name!r}"
            )
        if not _valid_arity(self.arity):
            raise FormulaFunctionError(
                self.name,
                f"{self.name}: arity must be a non-negative int, a (min, max) "
                f"range or VARIADIC, got {self.arity!r}",
            )

    @property
    def is_variadic(self) -> bool:
        return self.arity is VARIADIC

    @property
    def min_args(self) -> int:
        if self.is_variadic:
            return 0
        if isinstance(self.arity, tuple):
            return self.arity[0]
        return self.arity

    @property
    def max_args(self) -> int | None:
        """Upper bound on the argument count; ``None`` when unbounded."""
        if self.is_variadic:
            return None
        if isinstance(self.arity, tuple):
            return self.arity[1]
        return self.arity

    @property
    def arity_label(self) -> str:
        if self.is_variadic:
            return "any"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"

    def accepts(self, count: int) -> bool:
        """Whether *count* arguments satisfy this descriptor's arity."""
        if self.is_variadic:
            return True
        return self.min_args <= count <= self.max_args


def _valid_arity(arity: Any) -> bool:
    if arity is VARIADIC:
        return True
    if isinstance(arity, tuple):
        return (
            len(arity) == 2
            and all(isinstance(n, int) and not isinstance(n, bool) for n in arity)
            and 0 <= arity[0] <= arity[1]
        )
    return isinstance(arity, int) and not isinstance(arity, bool) and arity >= 0


@dataclass
class FunctionTable:
    """Ordered collection of :class:`FunctionDescriptor`, keyed by name.

    Lookups are dictionary lookups.  Declaration order is preserved for
    listing and for merging; it has no effect on name resolution.

    Attributes:
        shortcuts: Maps a shortcut letter to the name of the one-argument
            function it abbreviates.
    """

    shortcuts: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SHORTCUTS))
    _functions: dict[str, FunctionDescriptor] = field(default_factory=dict, repr=False)

    @classmethod
    def of(
        cls,
        descriptors: Iterable[FunctionDescriptor],
        shortcuts: dict[str, str] | None = None,
    ) -> FunctionTable:
        """Build a table from *descriptors*, in order."""
        table = cls() if shortcuts is None else cls(shortcuts=dict(shortcuts))
        for descriptor in descriptors:
            table.add(descriptor)
        return table

    def add(self, descriptor: FunctionDescriptor, *, replace: bool = False) -> None:
        """Add *descriptor* to the table.

        Raises:
            FormulaFunctionError: If the name is already registered and
                *replace* is false.
        """
        if descriptor.name in self._functions and not replace:
            raise FormulaFunctionError(
                descriptor.name, f"Function {descriptor.name!r} is already registered"
            )
        self._functions[descriptor.name] = descriptor

    def register(
        self,
        name: str,
        arity: Arity = 1,
        *,
        description: str = "",
        literal_args: tuple[int, ...] = (),
        replace: bool = False,
    ) -> Callable[[EvalFn], EvalFn]:
        """Decorator that registers a callback under *name*.

        Args:
            name: The name used after ``%`` in formulas.
            arity: Expected argument count, ``(min, max)`` range, or
                ``VARIADIC``.

        Returns:
            The original function, unmodified.
        """

        def decorator(fn: EvalFn) -> EvalFn:
            self.add(
                FunctionDescriptor(
                    name=name,
                    arity=arity,
                    eval=fn,
                    description=description,
                    literal_args=literal_args,
                ),
                replace=replace,
            )
            return fn

        return decorator

    def get(self, name: str) -> FunctionDescriptor | None:
        return self._functions.get(name)

    def resolve_shortcut(self, letter: str) -> FunctionDescriptor | None:
        """Return the descriptor a shortcut letter stands for.

        The alias map is consulted first; a descriptor registered under
        the bare letter is the fallback.
        """
        target = self.shortcuts.get(letter)
        if target is not None and target in self._functions:
            return self._functions[target]
        return self._functions.get(letter)

    def merged_with(self, other: FunctionTable) -> FunctionTable:
        """Return a new table holding this table's entries, then *other*'s.

        Entries of this table win on name clashes; shortcut aliases of
        this table win as well.
        """
        merged = FunctionTable(shortcuts={**other.shortcuts, **self.shortcuts})
        for descriptor in self:
            merged.add(descriptor)
        for descriptor in other:
            if descriptor.name not in merged:
                merged.add(descriptor)
        return merged

    def names(self) -> list[str]:
        return list(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[FunctionDescriptor]:
        return iter(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)
