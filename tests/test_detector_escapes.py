"""Tests for formula detection and the final unescaping pass."""

from __future__ import annotations

import pytest

from ledgercalc.formulas.detector import Detection, decode, detect
from ledgercalc.formulas.escapes import EscapeResolver
from ledgercalc.formulas.patterns import FormulaPatterns


class TestDetect:
    def test_formula(self) -> None:
        assert detect("=1+1") == Detection(True, "1+1")

    def test_plain_text(self) -> None:
        assert detect("hello") == (False, "hello")

    def test_empty_text(self) -> None:
        assert detect("") == (False, "")

    def test_equals_not_first(self) -> None:
        assert detect(" =1") == (False, " =1")

    def test_protected_literal(self) -> None:
        assert detect("'=ABC") == (False, "=ABC")

    def test_lone_quote_is_plain_text(self) -> None:
        assert detect("'ABC") == (False, "'ABC")

    def test_bare_equals(self) -> None:
        assert detect("=") == (True, "")

    def test_bytes_are_decoded(self) -> None:
        assert detect("=%A1".encode()) == (True, "%A1")

    def test_invalid_utf8_is_returned_unchanged(self) -> None:
        raw = b"=\xff1"
        text = decode(raw)
        assert detect(raw) == (False, text)


class TestEscapes:
    @pytest.fixture
    def escapes(self) -> EscapeResolver:
        return EscapeResolver(FormulaPatterns.compile())

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2\\+3", "2+3"),
            ("a\\-b", "a-b"),
            ("1\\/2", "1/2"),
            ("2\\*3", "2*3"),
            ("50\\%", "50%"),
        ],
    )
    def test_backslash_dropped(self, escapes, text, expected) -> None:
        assert escapes.resolve(text) == expected

    def test_other_backslashes_kept(self, escapes) -> None:
        assert escapes.resolve("C:\\dir") == "C:\\dir"
