"""B3 context propagation for the tracing filter."""

from tracefilter.context.headers import HeaderMap, get_header, remove_header, set_header
from tracefilter.context.propagators import (
    B3_HEADERS,
    FLAGS_HEADER,
    PARENT_SPAN_ID_HEADER,
    SAMPLED_HEADER,
    SINGLE_HEADER,
    SPAN_ID_HEADER,
    TRACE_ID_HEADER,
    B3Propagator,
    PropagationStyle,
    build_single_header,
    extract,
    extract_parent_context,
    inject,
    parse_headers,
    parse_single_header,
)

__all__ = [
    "HeaderMap",
    "get_header",
    "remove_header",
    "set_header",
    "B3_HEADERS",
    "TRACE_ID_HEADER",
    "SPAN_ID_HEADER",
    "PARENT_SPAN_ID_HEADER",
    "SAMPLED_HEADER",
    "FLAGS_HEADER",
    "SINGLE_HEADER",
    "B3Propagator",
    "PropagationStyle",
    "build_single_header",
    "parse_headers",
    "parse_single_header",
    "extract",
    "extract_parent_context",
    "inject",
]
