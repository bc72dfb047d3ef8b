"""Tests for the ledgercalc structured event logging system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def sink(log_dir: Path):
    from ledgercalc.logging.sink import EventSink

    return EventSink(log_dir)


def _lines(log_dir: Path) -> list[dict]:
    path = log_dir / "events.ndjson"
    return [json.loads(line) for line in path.read_text().strip().splitlines()]


# ---------------------------------------------------------------------------
# A) Event schema
# ---------------------------------------------------------------------------


class TestLedgerEvent:
    def test_event_defaults(self):
        from ledgercalc.logging.events import EventLevel, EventType, LedgerEvent

        evt = LedgerEvent(
            level=EventLevel.info,
            event_type=EventType.formula_evaluated,
            message="hello",
        )
        assert evt.schema_version == 1
        assert evt.ts.endswith("Z")
        assert evt.level == "info"
        assert evt.event_type == "formula_evaluated"
        assert evt.context == {}
        assert evt.error_code is None

    def test_all_event_types_exist(self):
        from ledgercalc.logging.events import EventType

        expected = {"formula_evaluated", "formula_diagnostic", "formula_config_loaded"}
        assert {e.value for e in EventType} == expected

    def test_truncate_context(self):
        from ledgercalc.logging.events import truncate_context

        ctx = truncate_context({"formula": "x" * 300, "nested": {"short": "ok"}, "n": 3})
        assert ctx["formula"].endswith("...[truncated]")
        assert len(ctx["formula"]) == 256 + len("...[truncated]")
        assert ctx["nested"] == {"short": "ok"}
        assert ctx["n"] == 3


# ---------------------------------------------------------------------------
# B) Filesystem NDJSON sink
# ---------------------------------------------------------------------------


class TestEventSink:
    def test_creates_log_dir(self, sink, log_dir):
        assert log_dir.is_dir()

    def test_write_appends_sorted_json(self, sink, log_dir):
        from ledgercalc.logging.events import EventLevel, EventType, LedgerEvent

        for i in range(3):
            sink.write(LedgerEvent(
                level=EventLevel.info,
                event_type=EventType.formula_evaluated,
                message=f"formula {i}",
            ))

        raw = (log_dir / "events.ndjson").read_text().strip().splitlines()
        assert len(raw) == 3
        keys = list(json.loads(raw[0]).keys())
        assert keys == sorted(keys)
        assert _lines(log_dir)[0]["level"] == "info"

    def test_read_global_most_recent_first(self, sink):
        from ledgercalc.logging.events import EventLevel, EventType, LedgerEvent

        for i in range(5):
            sink.write(LedgerEvent(
                level=EventLevel.info,
                event_type=EventType.formula_evaluated,
                message=f"formula {i}",
            ))

        events = sink.read_global()
        assert [e["message"] for e in events] == [f"formula {i}" for i in (4, 3, 2, 1, 0)]

    def test_read_global_filters(self, sink):
        from ledgercalc.logging.events import EventLevel, EventType, LedgerEvent

        sink.write(LedgerEvent(
            level=EventLevel.info,
            event_type=EventType.formula_evaluated,
            message="evaluated",
        ))
        sink.write(LedgerEvent(
            level=EventLevel.warning,
            event_type=EventType.formula_diagnostic,
            message="unknown",
            error_code="unknown_function",
        ))
        sink.write(LedgerEvent(
            level=EventLevel.warning,
            event_type=EventType.formula_diagnostic,
            message="zero",
            error_code="division_by_zero",
        ))

        assert len(sink.read_global(level="warning")) == 2
        assert len(sink.read_global(event_type="formula_evaluated")) == 1
        by_code = sink.read_global(error_code="division_by_zero")
        assert [e["message"] for e in by_code] == ["zero"]

    def test_read_global_limit(self, sink):
        from ledgercalc.logging.events import EventLevel, EventType, LedgerEvent

        for i in range(10):
            sink.write(LedgerEvent(
                level=EventLevel.info,
                event_type=EventType.formula_evaluated,
                message=f"formula {i}",
            ))

        assert len(sink.read_global(limit=3)) == 3

    def test_read_missing_log_returns_empty(self, sink):
        assert sink.read_global() == []

    def test_tail_read_drops_partial_line(self, log_dir):
        from ledgercalc.logging.events import EventLevel, EventType, LedgerEvent
        from ledgercalc.logging.sink import EventSink

        sink = EventSink(log_dir, tail_bytes=400)
        for i in range(20):
            sink.write(LedgerEvent(
                level=EventLevel.info,
                event_type=EventType.formula_evaluated,
                message=f"formula {i}",
            ))

        events = sink.read_global()
        assert 0 < len(events) < 20
        assert events[0]["message"] == "formula 19"

    def test_unparseable_lines_skipped(self, sink, log_dir):
        (log_dir / "events.ndjson").write_text('not json\n{"message": "ok"}\n')
        assert sink.read_global() == [{"message": "ok"}]


# ---------------------------------------------------------------------------
# C) Module-level emit helpers (safety)
# ---------------------------------------------------------------------------


class TestEmitHelpers:
    def test_emit_without_log_dir_is_noop(self):
        from ledgercalc.logging.events import EventType, emit_info, set_log_dir

        set_log_dir(None)
        # Should not raise
        emit_info(EventType.formula_evaluated, "test")

    def test_set_log_dir_enables_logging(self, log_dir):
        from ledgercalc.logging.events import EventType, emit_info, set_log_dir

        set_log_dir(log_dir)
        emit_info(EventType.formula_evaluated, "hello from test")

        lines = _lines(log_dir)
        assert len(lines) == 1
        assert lines[0]["message"] == "hello from test"

    def test_emit_warning_sets_error_code(self, log_dir):
        from ledgercalc.logging.events import EventType, emit_warning, set_log_dir

        set_log_dir(log_dir)
        emit_warning(
            EventType.formula_diagnostic,
            "boom",
            error_code="function_failed",
        )

        parsed = _lines(log_dir)[0]
        assert parsed["error_code"] == "function_failed"
        assert parsed["level"] == "warning"

    def test_levels_are_those_the_engine_emits(self):
        import ledgercalc.logging as pkg
        from ledgercalc.logging.events import EventLevel

        assert [level.value for level in EventLevel] == ["info", "warning"]
        assert not hasattr(pkg, "emit_error")

    def test_emit_never_raises(self, capsys):
        import ledgercalc.logging.events as mod

        class BrokenSink:
            def write(self, event):
                raise OSError("disk full")

        mod._sink = BrokenSink()
        mod._last_stderr_ts = 0.0
        mod.emit_info(mod.EventType.formula_evaluated, "lost")
        assert "logging failed" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# D) Engine integration
# ---------------------------------------------------------------------------


class TestEngineEvents:
    def test_evaluation_is_logged(self, log_dir):
        from ledgercalc.formulas import FormulaEngine
        from ledgercalc.logging.events import set_log_dir

        set_log_dir(log_dir)
        FormulaEngine().evaluate("=2+3")

        (evt,) = _lines(log_dir)
        assert evt["event_type"] == "formula_evaluated"
        assert evt["context"] == {"formula": "2+3", "result": "5", "diagnostic_count": 0}

    def test_one_warning_per_diagnostic(self, log_dir):
        from ledgercalc.formulas import FormulaEngine
        from ledgercalc.logging.events import set_log_dir

        set_log_dir(log_dir)
        FormulaEngine().evaluate("=%NOPE(1)+1/0")

        events = _lines(log_dir)
        warnings = [e for e in events if e["level"] == "warning"]
        assert [w["error_code"] for w in warnings] == ["unknown_function", "division_by_zero"]
        assert events[-1]["event_type"] == "formula_evaluated"
        assert events[-1]["context"]["diagnostic_count"] == 2

    def test_literals_are_not_logged(self, log_dir):
        from ledgercalc.formulas import FormulaEngine
        from ledgercalc.logging.events import set_log_dir

        set_log_dir(log_dir)
        FormulaEngine().evaluate("plain text")
        assert not (log_dir / "events.ndjson").exists()
