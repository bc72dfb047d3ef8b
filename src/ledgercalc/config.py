"""Engine configuration: defaults, YAML overrides and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ledgercalc.formulas.errors import FormulaConfigError
from ledgercalc.formulas.functions import DEFAULT_SHORTCUTS

CONFIG_FILENAME = "ledgercalc.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "arg_separators": ",;",
    "shortcut_letters": "ALDC",
    "shortcuts": dict(DEFAULT_SHORTCUTS),
    "max_iterations": 64,
    "decimal_separator": ".",
    "thousand_separator": "",
    "auto_eval": True,
    "builtins": True,
    "log_dir": None,  # no event log unless set
}

_OPERATOR_CHARS = set("+-*/%()\\")


class EngineConfig(BaseModel):
    """Validated settings for a :class:`~ledgercalc.formulas.FormulaEngine`."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    arg_separators: str = DEFAULT_CONFIG["arg_separators"]
    shortcut_letters: str = DEFAULT_CONFIG["shortcut_letters"]
    shortcuts: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SHORTCUTS))
    max_iterations: int = Field(DEFAULT_CONFIG["max_iterations"], ge=1)
    decimal_separator: str = Field(DEFAULT_CONFIG["decimal_separator"], min_length=1, max_length=1)
    thousand_separator: str = Field(DEFAULT_CONFIG["thousand_separator"], max_length=1)
    auto_eval: bool = DEFAULT_CONFIG["auto_eval"]
    builtins: bool = DEFAULT_CONFIG["builtins"]
    log_dir: str | None = None

    @field_validator("shortcuts")
    @classmethod
    def _single_letter_keys(cls, value: dict[str, str]) -> dict[str, str]:
        for letter in value:
            if len(letter) != 1 or not letter.isalpha():
                raise ValueError(f"shortcut keys must be single letters, got {letter!r}")
        return value

    @model_validator(mode="after")
    def _separators_do_not_clash(self) -> EngineConfig:
        for key in ("decimal_separator", "thousand_separator"):
            char = getattr(self, key)
            if char and (char in self.arg_separators or char in _OPERATOR_CHARS):
                raise ValueError(
                    f"{key} {char!r} clashes with an argument separator or operator"
                )
        if self.thousand_separator and self.thousand_separator == self.decimal_separator:
            raise ValueError("thousand_separator and decimal_separator must differ")
        return self


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file, with defaults.

    Args:
        path: Either a YAML file, or a directory holding
            ``ledgercalc.yaml``.  ``None`` returns the defaults.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        return config
    config_path = path / CONFIG_FILENAME if path.is_dir() else path
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise FormulaConfigError(f"{config_path} must hold a mapping")
        # a nested ``formula:`` block is accepted as well
        nested = user_config.pop("formula", None)
        if isinstance(nested, dict):
            user_config.update(nested)
        config.update(user_config)
    return config


def load_engine_config(path: Path | None = None, **overrides: Any) -> EngineConfig:
    """Load and validate configuration.

    Raises:
        FormulaConfigError: If a value fails validation.
    """
    config = load_config(path)
    config.update({k: v for k, v in overrides.items() if v is not None})
    return make_engine_config(config)


def make_engine_config(config: dict[str, Any]) -> EngineConfig:
    try:
        return EngineConfig(**config)
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise FormulaConfigError(first.get("msg", str(exc)), key=key) from exc
