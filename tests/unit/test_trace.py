"""Tests for the trace recorder."""

from chaoslab.trace import StepStatus, Trace, TraceRow


class TestTraceRow:
    def test_to_dict_omits_empty_fields(self):
        data = TraceRow(tool="summarize", i=3, duration_ms=1.5).to_dict()
        assert data == {"i": 3, "tool": "summarize", "duration_ms": 1.5, "status": "ok"}

    def test_to_dict_includes_fault_and_action(self):
        data = TraceRow("web.fetch", StepStatus.RECOVERED, 2, 10.0, "http_500", "retry(1)").to_dict()
        assert data["fault"] == "http_500"
        assert data["action"] == "retry(1)"
        assert data["status"] == "recovered"

    def test_from_dict(self):
        row = TraceRow.from_dict({"i": "4", "tool": "t", "status": "failed", "duration_ms": "12.5", "fault": "x"})
        assert row.i == 4
        assert row.status is StepStatus.FAILED
        assert row.duration_ms == 12.5
        assert row.fault == "x"
        assert row.action is None

    def test_from_dict_bad_values(self):
        row = TraceRow.from_dict({"tool": "t", "status": "weird", "duration_ms": float("inf")})
        assert row.status is StepStatus.FAILED
        assert row.duration_ms == 0.0

    def test_resolved_and_retry_flags(self):
        assert TraceRow("t").is_resolved
        assert TraceRow("t", StepStatus.RECOVERED).is_resolved
        assert not TraceRow("t", StepStatus.FAILED).is_resolved
        assert TraceRow("t", action="retry(2)").is_retry
        assert not TraceRow("t", action="fallback").is_retry

    def test_coerce_fixes_negative_duration(self):
        assert TraceRow.coerce(TraceRow("t", duration_ms=-3)).duration_ms == 0.0

    def test_coerce_unknown_status_becomes_failed(self):
        assert TraceRow.coerce(TraceRow("t", status="bogus")).status is StepStatus.FAILED

    def test_coerce_plain_status_string(self):
        assert TraceRow.coerce(TraceRow("t", status="recovered")).status is StepStatus.RECOVERED


class TestTrace:
    def test_indices_are_sequential(self):
        trace = Trace()
        for tool in ("a", "b", "c"):
            trace.end(tool, trace.start(), StepStatus.OK)
        assert [row.i for row in trace] == [1, 2, 3]
        assert len(trace) == 3

    def test_durations_non_negative(self):
        trace = Trace()
        row = trace.end("a", trace.start(), StepStatus.OK)
        assert row.duration_ms >= 0

    def test_future_mark_clamped(self):
        trace = Trace()
        row = trace.end("a", trace.start() + 100, StepStatus.OK)
        assert row.duration_ms == 0.0

    def test_append_renumbers(self):
        trace = Trace()
        trace.end("a", trace.start(), StepStatus.OK)
        row = trace.append(TraceRow("b", i=99))
        assert row.i == 2
        assert trace.rows[-1].tool == "b"

    def test_rows_is_a_snapshot(self):
        trace = Trace()
        trace.end("a", trace.start(), StepStatus.OK)
        snapshot = trace.rows
        trace.end("b", trace.start(), StepStatus.FAILED, fault="x")
        assert len(snapshot) == 1
        assert len(trace.rows) == 2

    def test_to_list(self):
        trace = Trace()
        trace.end("a", trace.start(), StepStatus.FAILED, fault="http_500", note="n")
        data = trace.to_list()
        assert data[0]["fault"] == "http_500"
        assert data[0]["note"] == "n"
        assert data[0]["status"] == "failed"
