"""Tests for B3 extract/inject, both header forms."""

import pytest

from tracefilter.context import (
    FLAGS_HEADER,
    PARENT_SPAN_ID_HEADER,
    SAMPLED_HEADER,
    SINGLE_HEADER,
    SPAN_ID_HEADER,
    TRACE_ID_HEADER,
    HeaderMap,
    PropagationStyle,
    build_single_header,
    extract,
    extract_parent_context,
    inject,
    parse_headers,
    parse_single_header,
)
from tracefilter.errors import (
    EmptyContextError,
    InvalidTraceContextError,
    MissingTargetHeadersError,
    PropagationError,
)
from tracefilter.tracer.span_context import SpanContext, TraceID

TRACE_ID_128 = "4bf92f3577b34da6a3ce929d0e0e4736"
TRACE_ID_64 = "a3ce929d0e0e4736"
SPAN_ID = "00f067aa0ba902b7"
PARENT_ID = "05e3ac9a4f6e3b90"


class TestExtractMultiHeader:
    def test_example_multi_headers(self):
        ctx = extract({
            "X-B3-TraceId": TRACE_ID_128,
            "X-B3-SpanId": SPAN_ID,
            "X-B3-Sampled": "1",
        })
        assert str(ctx.trace_id) == TRACE_ID_128
        assert ctx.span_id == int(SPAN_ID, 16)
        assert ctx.sampled is True
        assert ctx.debug is False
        assert ctx.parent_id is None

    def test_lookup_is_case_insensitive(self):
        ctx = extract({
            "x-b3-traceid": TRACE_ID_64,
            "X-B3-SPANID": SPAN_ID,
            "x-b3-parentspanid": PARENT_ID,
        })
        assert str(ctx.trace_id) == TRACE_ID_64
        assert ctx.trace_id.high == 0
        assert ctx.parent_id == int(PARENT_ID, 16)
        assert ctx.sampled is None

    def test_uppercase_hex_accepted(self):
        ctx = extract({"X-B3-TraceId": TRACE_ID_128.upper(), "X-B3-SpanId": SPAN_ID.upper()})
        assert str(ctx.trace_id) == TRACE_ID_128

    def test_sampled_zero(self):
        ctx = extract({"X-B3-TraceId": TRACE_ID_64, "X-B3-SpanId": SPAN_ID, "X-B3-Sampled": "0"})
        assert ctx.sampled is False

    def test_flags_debug_overrides_sampled(self):
        ctx = extract({
            "X-B3-TraceId": TRACE_ID_64,
            "X-B3-SpanId": SPAN_ID,
            "X-B3-Sampled": "0",
            "X-B3-Flags": "1",
        })
        assert ctx.debug is True
        assert ctx.is_sampled() is True

    def test_other_flags_values_ignored(self):
        ctx = extract({"X-B3-TraceId": TRACE_ID_64, "X-B3-SpanId": SPAN_ID, "X-B3-Flags": "0"})
        assert ctx.debug is False

    def test_no_headers_is_empty(self):
        with pytest.raises(EmptyContextError):
            extract({"content-type": "text/plain"})

    @pytest.mark.parametrize("headers", [
        {"X-B3-TraceId": TRACE_ID_64},
        {"X-B3-SpanId": SPAN_ID},
        {"X-B3-Sampled": "1"},
        {"X-B3-ParentSpanId": PARENT_ID},
    ])
    def test_missing_ids_invalid(self, headers):
        with pytest.raises(InvalidTraceContextError):
            extract(headers)

    @pytest.mark.parametrize("trace_id,span_id", [
        ("xyz", SPAN_ID),
        ("a3ce929d0e0e473", SPAN_ID),  # 15 chars
        (TRACE_ID_128 + "00", SPAN_ID),
        ("0" * 32, SPAN_ID),
        (TRACE_ID_64, "0" * 16),
        (TRACE_ID_64, "00f067aa0ba902"),
        (TRACE_ID_64, "0x0067aa0ba902b7"),
    ])
    def test_malformed_ids(self, trace_id, span_id):
        with pytest.raises(InvalidTraceContextError):
            extract({"X-B3-TraceId": trace_id, "X-B3-SpanId": span_id})

    def test_invalid_sampled_value(self):
        with pytest.raises(InvalidTraceContextError) as exc_info:
            parse_headers(TRACE_ID_64, SPAN_ID, sampled="true")
        assert exc_info.value.details["header"] == SAMPLED_HEADER

    def test_invalid_parent(self):
        with pytest.raises(InvalidTraceContextError) as exc_info:
            parse_headers(TRACE_ID_64, SPAN_ID, parent_span_id="nothex")
        assert "parent span id" in str(exc_info.value)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            extract({"X-B3-TraceId": "bad", "X-B3-SpanId": SPAN_ID})


class TestExtractSingleHeader:
    def test_example_single_header(self):
        ctx = extract({"b3": f"{TRACE_ID_128}-{SPAN_ID}-1-{PARENT_ID}"})
        assert str(ctx.trace_id) == TRACE_ID_128
        assert ctx.span_id == int(SPAN_ID, 16)
        assert ctx.sampled is True
        assert ctx.parent_id == int(PARENT_ID, 16)

    def test_ids_only(self):
        ctx = parse_single_header(f"{TRACE_ID_64}-{SPAN_ID}")
        assert ctx.sampled is None
        assert ctx.debug is False
        assert ctx.parent_id is None

    def test_debug_state(self):
        ctx = parse_single_header(f"{TRACE_ID_64}-{SPAN_ID}-d")
        assert ctx.debug is True
        assert ctx.is_sampled() is True

    def test_deny_state(self):
        assert parse_single_header(f"{TRACE_ID_64}-{SPAN_ID}-0").sampled is False

    @pytest.mark.parametrize("value", [
        "1",
        TRACE_ID_64,
        f"{TRACE_ID_64}-{SPAN_ID}-x",
        f"{TRACE_ID_64}-{SPAN_ID}-1-{PARENT_ID}-extra",
        f"{TRACE_ID_64}-{SPAN_ID}-1-zz",
        f"{TRACE_ID_64}-{SPAN_ID}--{PARENT_ID}",
        f"-{SPAN_ID}",
    ])
    def test_malformed(self, value):
        with pytest.raises(InvalidTraceContextError):
            parse_single_header(value)

    def test_empty_value(self):
        with pytest.raises(EmptyContextError):
            parse_single_header("")

    def test_case_insensitive_name(self):
        ctx = extract({"B3": f"{TRACE_ID_64}-{SPAN_ID}-1"})
        assert ctx.sampled is True


class TestExtractPrecedence:
    def test_single_header_wins_over_multi(self):
        other_trace = "1" * 32
        ctx = extract({
            "b3": f"{TRACE_ID_128}-{SPAN_ID}-0",
            "X-B3-TraceId": other_trace,
            "X-B3-SpanId": PARENT_ID,
            "X-B3-Sampled": "1",
        })
        assert str(ctx.trace_id) == TRACE_ID_128
        assert ctx.span_id == int(SPAN_ID, 16)
        assert ctx.sampled is False

    def test_invalid_single_falls_back_to_multi(self):
        ctx = extract({
            "b3": "garbage",
            "X-B3-TraceId": TRACE_ID_64,
            "X-B3-SpanId": SPAN_ID,
        })
        assert str(ctx.trace_id) == TRACE_ID_64

    def test_empty_single_uses_multi(self):
        ctx = extract({"b3": "", "X-B3-TraceId": TRACE_ID_64, "X-B3-SpanId": SPAN_ID})
        assert ctx.span_id == int(SPAN_ID, 16)

    def test_both_malformed_raises_single_error(self):
        with pytest.raises(InvalidTraceContextError) as exc_info:
            extract({
                "b3": "not-a-valid-b3",
                "X-B3-TraceId": "bad",
                "X-B3-SpanId": SPAN_ID,
            })
        assert exc_info.value.details["header"] == SINGLE_HEADER

    def test_malformed_single_without_multi_raises_single_error(self):
        with pytest.raises(InvalidTraceContextError) as exc_info:
            extract({"b3": "nope"})
        assert exc_info.value.details["header"] == SINGLE_HEADER

    def test_multi_error_when_no_single(self):
        with pytest.raises(InvalidTraceContextError) as exc_info:
            extract({"X-B3-TraceId": TRACE_ID_64, "X-B3-SpanId": "bad"})
        assert exc_info.value.details["header"] == SPAN_ID_HEADER


class TestExtractParentContext:
    def test_returns_context(self):
        ctx = extract_parent_context({"b3": f"{TRACE_ID_64}-{SPAN_ID}-1"})
        assert ctx is not None and ctx.is_valid()

    def test_none_on_missing_or_invalid(self):
        assert extract_parent_context({}) is None
        assert extract_parent_context({"b3": "bad"}) is None


class TestInject:
    def _context(self, **kwargs):
        defaults = dict(
            trace_id=TraceID.from_hex(TRACE_ID_128),
            span_id=int(SPAN_ID, 16),
        )
        defaults.update(kwargs)
        return SpanContext(**defaults)

    def test_writes_ids_and_sampled(self):
        headers = {}
        inject(headers, self._context(sampled=True, parent_id=int(PARENT_ID, 16)))
        assert headers == {
            TRACE_ID_HEADER: TRACE_ID_128,
            SPAN_ID_HEADER: SPAN_ID,
            PARENT_SPAN_ID_HEADER: PARENT_ID,
            SAMPLED_HEADER: "1",
        }

    def test_sampled_false(self):
        headers = {}
        inject(headers, self._context(sampled=False))
        assert headers[SAMPLED_HEADER] == "0"

    def test_unset_sampled_writes_neither(self):
        headers = {}
        inject(headers, self._context())
        assert SAMPLED_HEADER not in headers
        assert FLAGS_HEADER not in headers

    def test_debug_emits_only_flags(self):
        headers = {}
        inject(headers, self._context(debug=True, sampled=False))
        assert headers[FLAGS_HEADER] == "1"
        assert SAMPLED_HEADER not in headers

    def test_64_bit_trace_id_width(self):
        headers = {}
        inject(headers, self._context(trace_id=TraceID.from_hex(TRACE_ID_64)))
        assert headers[TRACE_ID_HEADER] == TRACE_ID_64

    def test_lowercase_fixed_width(self):
        headers = {}
        inject(headers, self._context(trace_id=TraceID(low=0xABC), span_id=0x1F))
        assert headers[TRACE_ID_HEADER] == "0000000000000abc"
        assert headers[SPAN_ID_HEADER] == "000000000000001f"

    def test_sampling_only_context_omits_ids(self):
        headers = {}
        inject(headers, SpanContext(sampled=True))
        assert headers == {SAMPLED_HEADER: "1"}

    def test_empty_context_rejected(self):
        headers = {}
        with pytest.raises(EmptyContextError):
            inject(headers, SpanContext())
        assert headers == {}

    def test_missing_sink(self):
        with pytest.raises(MissingTargetHeadersError):
            inject(None, self._context())

    def test_missing_sink_checked_before_empty(self):
        with pytest.raises(MissingTargetHeadersError):
            inject(None, SpanContext())

    def test_replaces_existing_spelling(self):
        headers = {"x-b3-traceid": "stale", "other": "kept"}
        inject(headers, self._context())
        assert "x-b3-traceid" not in headers
        assert headers[TRACE_ID_HEADER] == TRACE_ID_128
        assert headers["other"] == "kept"

    def test_header_map_sink(self):
        headers = HeaderMap({"x-b3-sampled": "0"})
        inject(headers, self._context(sampled=True))
        assert headers["x-b3-sampled"] == "1"
        assert len([k for k in headers if k.lower() == "x-b3-sampled"]) == 1

    def test_multi_style_drops_inbound_single_header(self):
        headers = HeaderMap({"b3": f"{TRACE_ID_128}-{PARENT_ID}-1", ":path": "/"})
        inject(headers, self._context(sampled=True, parent_id=int(PARENT_ID, 16)))

        assert SINGLE_HEADER not in headers
        assert headers[":path"] == "/"
        ctx = extract(headers)
        assert ctx.span_id == int(SPAN_ID, 16)
        assert ctx.parent_id == int(PARENT_ID, 16)

    def test_single_style_drops_inbound_multi_headers(self):
        headers = {
            "X-B3-TraceId": TRACE_ID_64,
            "X-B3-SpanId": PARENT_ID,
            "X-B3-ParentSpanId": SPAN_ID,
            "X-B3-Flags": "1",
        }
        inject(headers, self._context(sampled=False), style=PropagationStyle.SINGLE)
        assert headers == {SINGLE_HEADER: f"{TRACE_ID_128}-{SPAN_ID}-0"}

    def test_stale_parent_removed(self):
        headers = {PARENT_SPAN_ID_HEADER: PARENT_ID, FLAGS_HEADER: "1"}
        inject(headers, self._context(sampled=True))
        assert PARENT_SPAN_ID_HEADER not in headers
        assert FLAGS_HEADER not in headers

    def test_empty_context_leaves_sink_untouched(self):
        headers = {SINGLE_HEADER: f"{TRACE_ID_128}-{SPAN_ID}"}
        with pytest.raises(EmptyContextError):
            inject(headers, SpanContext())
        assert headers == {SINGLE_HEADER: f"{TRACE_ID_128}-{SPAN_ID}"}

    def test_single_style(self):
        headers = {}
        inject(headers, self._context(sampled=True), style=PropagationStyle.SINGLE)
        assert headers == {SINGLE_HEADER: f"{TRACE_ID_128}-{SPAN_ID}-1"}

    def test_both_style(self):
        headers = {}
        inject(headers, self._context(debug=True), style="both")
        assert headers[SINGLE_HEADER] == f"{TRACE_ID_128}-{SPAN_ID}-d"
        assert headers[FLAGS_HEADER] == "1"
        assert headers[TRACE_ID_HEADER] == TRACE_ID_128


class TestBuildSingleHeader:
    def test_full(self):
        ctx = SpanContext(
            trace_id=TraceID.from_hex(TRACE_ID_128),
            span_id=int(SPAN_ID, 16),
            parent_id=int(PARENT_ID, 16),
            sampled=True,
        )
        assert build_single_header(ctx) == f"{TRACE_ID_128}-{SPAN_ID}-1-{PARENT_ID}"

    def test_parent_dropped_without_state(self):
        ctx = SpanContext(
            trace_id=TraceID.from_hex(TRACE_ID_64),
            span_id=int(SPAN_ID, 16),
            parent_id=int(PARENT_ID, 16),
        )
        assert build_single_header(ctx) == f"{TRACE_ID_64}-{SPAN_ID}"

    def test_sampling_only(self):
        assert build_single_header(SpanContext(sampled=False)) == "0"

    def test_empty(self):
        with pytest.raises(PropagationError):
            build_single_header(SpanContext())


class TestRoundTrip:
    @pytest.mark.parametrize("ctx", [
        SpanContext(TraceID.from_hex(TRACE_ID_128), int(SPAN_ID, 16), None, True, False),
        SpanContext(TraceID.from_hex(TRACE_ID_64), int(SPAN_ID, 16), int(PARENT_ID, 16), False, False),
        SpanContext(TraceID.from_hex(TRACE_ID_64), int(SPAN_ID, 16), int(PARENT_ID, 16), None, False),
        SpanContext(TraceID.from_hex(TRACE_ID_128), int(SPAN_ID, 16), None, False, True),
    ])
    @pytest.mark.parametrize("style", list(PropagationStyle))
    def test_extract_inverts_inject(self, ctx, style):
        headers = HeaderMap()
        inject(headers, ctx, style=style)
        decoded = extract(headers)

        assert decoded.trace_id == ctx.trace_id
        assert decoded.span_id == ctx.span_id
        assert decoded.debug == ctx.debug
        assert decoded.is_sampled() == ctx.is_sampled()
        if style != PropagationStyle.MULTI and ctx.is_sampled() is None:
            # no sampling state, so the b3 header carries no parent and wins
            assert decoded.parent_id is None
        else:
            assert decoded.parent_id == ctx.parent_id
