"""B3 trace context propagation, multi-header and single-header forms."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Mapping, MutableMapping, Optional, Set

from opentelemetry import context as context_api
from opentelemetry.propagators.textmap import (
    CarrierT,
    Getter,
    Setter,
    TextMapPropagator,
    default_getter,
    default_setter,
)
from opentelemetry.trace import NonRecordingSpan, TraceFlags, get_current_span, set_span_in_context
from opentelemetry.trace import SpanContext as OTelSpanContext

from tracefilter.context.headers import get_header, remove_header, set_header
from tracefilter.errors import (
    EmptyContextError,
    InvalidTraceContextError,
    MissingTargetHeadersError,
    PropagationError,
)
from tracefilter.tracer.span_context import SpanContext, TraceID
from tracefilter.utils.helpers import format_span_id, parse_span_id, parse_trace_id

logger = logging.getLogger(__name__)

TRACE_ID_HEADER = "X-B3-TraceId"
SPAN_ID_HEADER = "X-B3-SpanId"
PARENT_SPAN_ID_HEADER = "X-B3-ParentSpanId"
SAMPLED_HEADER = "X-B3-Sampled"
FLAGS_HEADER = "X-B3-Flags"
SINGLE_HEADER = "b3"

B3_HEADERS = (
    TRACE_ID_HEADER,
    SPAN_ID_HEADER,
    PARENT_SPAN_ID_HEADER,
    SAMPLED_HEADER,
    FLAGS_HEADER,
    SINGLE_HEADER,
)


class PropagationStyle(str, Enum):
    MULTI = "multi"
    SINGLE = "single"
    BOTH = "both"


def _invalid(message: str, header: str, value: str) -> InvalidTraceContextError:
    return InvalidTraceContextError(message, {"header": header, "value": value})


def _parse_trace_id(value: str, header: str) -> TraceID:
    try:
        trace_id = TraceID.from_int(parse_trace_id(value))
    except ValueError as e:
        raise _invalid(str(e), header, value) from e
    if trace_id.empty():
        raise _invalid("trace id must be non-zero", header, value)
    return trace_id


def _parse_span_id(value: str, header: str, kind: str = "span id") -> int:
    try:
        span_id = parse_span_id(value)
    except ValueError as e:
        raise _invalid(str(e).replace("span id", kind), header, value) from e
    if span_id == 0:
        raise _invalid(f"{kind} must be non-zero", header, value)
    return span_id


def parse_headers(
    trace_id: str,
    span_id: str,
    parent_span_id: str = "",
    sampled: str = "",
    flags: str = "",
) -> SpanContext:
    """
    Decode the multi-header B3 form.

    Raises:
        EmptyContextError: no B3 field carries a value
        InvalidTraceContextError: ids missing or malformed, or bad sampled value
    """
    if not (trace_id or span_id or parent_span_id or sampled or flags):
        raise EmptyContextError()

    if sampled == "1":
        sampled_value: Optional[bool] = True
    elif sampled == "0":
        sampled_value = False
    elif sampled == "":
        sampled_value = None
    else:
        raise _invalid("sampled must be '0' or '1'", SAMPLED_HEADER, sampled)

    # Only "1" is meaningful for flags; anything else is ignored.
    debug = flags == "1"
    if debug:
        sampled_value = None

    if not trace_id or not span_id:
        raise InvalidTraceContextError(
            "trace id and span id are both required",
            {"trace_id": trace_id or None, "span_id": span_id or None},
        )

    parent_id = None
    if parent_span_id:
        parent_id = _parse_span_id(parent_span_id, PARENT_SPAN_ID_HEADER, "parent span id")

    return SpanContext(
        trace_id=_parse_trace_id(trace_id, TRACE_ID_HEADER),
        span_id=_parse_span_id(span_id, SPAN_ID_HEADER),
        parent_id=parent_id,
        sampled=sampled_value,
        debug=debug,
    )


def parse_single_header(value: str) -> SpanContext:
    """
    Decode ``b3: {TraceId}-{SpanId}[-{SamplingState}[-{ParentSpanId}]]``.

    SamplingState is ``1`` (accept), ``0`` (deny) or ``d`` (debug).
    """
    if not value:
        raise EmptyContextError()

    parts = value.split("-")
    if not 2 <= len(parts) <= 4:
        raise _invalid("b3 header must have 2 to 4 '-' separated fields", SINGLE_HEADER, value)

    trace_id = _parse_trace_id(parts[0], SINGLE_HEADER)
    span_id = _parse_span_id(parts[1], SINGLE_HEADER)

    sampled: Optional[bool] = None
    debug = False
    if len(parts) >= 3:
        state = parts[2]
        if state == "d":
            debug = True
        elif state == "1":
            sampled = True
        elif state == "0":
            sampled = False
        else:
            raise _invalid("sampling state must be '0', '1' or 'd'", SINGLE_HEADER, value)

    parent_id = None
    if len(parts) == 4:
        parent_id = _parse_span_id(parts[3], SINGLE_HEADER, "parent span id")

    return SpanContext(
        trace_id=trace_id,
        span_id=span_id,
        parent_id=parent_id,
        sampled=sampled,
        debug=debug,
    )


def _extract_fields(read: Callable[[str], str]) -> SpanContext:
    single = read(SINGLE_HEADER)

    single_error = None
    if single:
        try:
            return parse_single_header(single)
        except PropagationError as e:
            single_error = e

    try:
        return parse_headers(
            read(TRACE_ID_HEADER),
            read(SPAN_ID_HEADER),
            read(PARENT_SPAN_ID_HEADER),
            read(SAMPLED_HEADER),
            read(FLAGS_HEADER),
        )
    except PropagationError:
        if single_error is not None:
            raise single_error
        raise


def extract(headers: Mapping[str, str]) -> SpanContext:
    """
    Extract a B3 context from headers (case-insensitive).

    A well-formed ``b3`` single header wins over the ``X-B3-*`` headers. When
    both forms are malformed the single-header error is raised.

    Raises:
        EmptyContextError: no B3 headers present
        InvalidTraceContextError: malformed B3 headers
    """
    return _extract_fields(lambda name: get_header(headers, name))


def extract_parent_context(headers: Mapping[str, str]) -> Optional[SpanContext]:
    """Extract a B3 context, returning None (start a new trace) on any failure."""
    try:
        return extract(headers)
    except EmptyContextError:
        return None
    except PropagationError as e:
        logger.debug("ignoring invalid b3 context: %s", e)
        return None


def build_single_header(context: SpanContext) -> str:
    """Encode a context as a ``b3`` single header value."""
    if context.is_empty():
        raise EmptyContextError()

    if context.debug:
        state = "d"
    elif context.sampled is not None:
        state = "1" if context.sampled else "0"
    else:
        state = ""

    if not context.is_valid():
        # sampling-only context
        return state

    value = f"{context.trace_id}-{format_span_id(context.span_id)}"
    if state:
        value += f"-{state}"
        if context.parent_id is not None:
            value += f"-{format_span_id(context.parent_id)}"
    return value


def _write_fields(
    context: SpanContext,
    write: Callable[[str, str], None],
    style: PropagationStyle,
) -> None:
    if context.is_empty():
        raise EmptyContextError()

    if style in (PropagationStyle.SINGLE, PropagationStyle.BOTH):
        single = build_single_header(context)
        if single:
            write(SINGLE_HEADER, single)
        if style == PropagationStyle.SINGLE:
            return

    # Debug implies sampled, so X-B3-Sampled is never sent next to X-B3-Flags.
    if context.debug:
        write(FLAGS_HEADER, "1")
    elif context.sampled is not None:
        write(SAMPLED_HEADER, "1" if context.sampled else "0")

    if context.is_valid():
        write(TRACE_ID_HEADER, str(context.trace_id))
        write(SPAN_ID_HEADER, format_span_id(context.span_id))
        if context.parent_id is not None:
            write(PARENT_SPAN_ID_HEADER, format_span_id(context.parent_id))


def inject(
    headers: Optional[MutableMapping[str, str]],
    context: SpanContext,
    style: PropagationStyle = PropagationStyle.MULTI,
) -> None:
    """
    Write a B3 context into headers.

    Identifiers are only written for a valid context; a sampling-only context
    writes just its sampling field. B3 headers already in the sink are
    replaced, whatever their style.

    Raises:
        MissingTargetHeadersError: headers is None
        EmptyContextError: context is the empty context
    """
    if headers is None:
        raise MissingTargetHeadersError()
    if context.is_empty():
        raise EmptyContextError()
    # A leftover inbound b3 header would win over new X-B3-* fields on extract.
    for name in B3_HEADERS:
        remove_header(headers, name)
    _write_fields(context, lambda name, value: set_header(headers, name, value), PropagationStyle(style))


class B3Propagator(TextMapPropagator):
    """OpenTelemetry TextMapPropagator speaking B3 through this module's codec."""

    def __init__(self, style: PropagationStyle = PropagationStyle.MULTI) -> None:
        self.style = PropagationStyle(style)

    def extract(
        self,
        carrier: CarrierT,
        context: Optional[context_api.Context] = None,
        getter: Getter = default_getter,
    ) -> context_api.Context:
        if context is None:
            context = context_api.get_current()

        names = {key.lower(): key for key in getter.keys(carrier)}

        def read(name: str) -> str:
            key = names.get(name.lower())
            if key is None:
                return ""
            values = getter.get(carrier, key)
            return values[0] if values else ""

        try:
            b3_context = _extract_fields(read)
        except PropagationError as e:
            logger.debug("b3 extract failed: %s", e)
            return context

        if not b3_context.is_valid():
            return context

        flags = TraceFlags.SAMPLED if b3_context.is_sampled() else TraceFlags.DEFAULT
        span_context = OTelSpanContext(
            trace_id=b3_context.trace_id.to_int(),
            span_id=b3_context.span_id,
            is_remote=True,
            trace_flags=TraceFlags(flags),
        )
        return set_span_in_context(NonRecordingSpan(span_context), context)

    def inject(
        self,
        carrier: CarrierT,
        context: Optional[context_api.Context] = None,
        setter: Setter = default_setter,
    ) -> None:
        span_context = get_current_span(context).get_span_context()
        if not span_context.is_valid:
            return

        b3_context = SpanContext(
            trace_id=TraceID.from_int(span_context.trace_id),
            span_id=span_context.span_id,
            sampled=span_context.trace_flags.sampled,
        )
        _write_fields(b3_context, lambda name, value: setter.set(carrier, name, value), self.style)

    @property
    def fields(self) -> Set[str]:
        if self.style == PropagationStyle.SINGLE:
            return {SINGLE_HEADER}
        if self.style == PropagationStyle.MULTI:
            return set(B3_HEADERS) - {SINGLE_HEADER}
        return set(B3_HEADERS)
