"""Tracer components for the tracing filter."""

from tracefilter.tracer.provider import SpanProcessor, TracerProvider
from tracefilter.tracer.span import Span, SpanStatus
from tracefilter.tracer.span_context import SpanContext, TraceID
from tracefilter.tracer.tracer import Tracer

__all__ = [
    "Span",
    "SpanStatus",
    "SpanContext",
    "TraceID",
    "Tracer",
    "TracerProvider",
    "SpanProcessor",
]
