"""Decide whether a text is a formula, and strip its markers."""

from __future__ import annotations

from typing import NamedTuple

FORMULA_PREFIX = "="
LITERAL_PREFIX = "'="


class Detection(NamedTuple):
    """Outcome of :func:`detect`.

    Attributes:
        is_formula: Whether *text* must go through evaluation.
        text: The formula body (without ``=``) when ``is_formula``,
            otherwise the final, literal result.
    """

    is_formula: bool
    text: str


def decode(text: str | bytes) -> str:
    """Return *text* as ``str``.

    Bytes that are not valid UTF-8 are kept losslessly as surrogate
    escapes, which :func:`detect` then rejects as not-a-formula.
    """
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="surrogateescape")
    return text


def is_valid_text(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def detect(text: str | bytes) -> Detection:
    """Classify *text* as a formula or a literal.

    - Text that is not valid UTF-8 is returned unchanged.
    - ``'=...`` is a protected literal: the quote is dropped and the
      rest, ``=`` included, is returned verbatim.
    - Anything not starting with ``=`` is returned unchanged.
    - ``=body`` is a formula; ``body`` is what gets evaluated.
    """
    text = decode(text)
    if not is_valid_text(text):
        return Detection(False, text)
    if text.startswith(LITERAL_PREFIX):
        return Detection(False, text[1:])
    if not text.startswith(FORMULA_PREFIX):
        return Detection(False, text)
    return Detection(True, text[len(FORMULA_PREFIX):])
