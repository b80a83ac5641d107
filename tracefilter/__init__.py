"""B3 trace context propagation for proxy HTTP filters."""

from tracefilter.bootstrap import create_filter_factory, init
from tracefilter.config import TraceFilterConfig, TracingConfig, load_config
from tracefilter.context import (
    B3Propagator,
    HeaderMap,
    PropagationStyle,
    extract,
    extract_parent_context,
    inject,
)
from tracefilter.errors import (
    ConfigError,
    EmptyContextError,
    InvalidTraceContextError,
    MissingTargetHeadersError,
    PropagationError,
    TraceFilterError,
)
from tracefilter.tracer import SpanContext, TraceID, Tracer, TracerProvider

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "init",
    "create_filter_factory",
    "load_config",
    "TraceFilterConfig",
    "TracingConfig",
    "B3Propagator",
    "HeaderMap",
    "PropagationStyle",
    "extract",
    "extract_parent_context",
    "inject",
    "SpanContext",
    "TraceID",
    "Tracer",
    "TracerProvider",
    "TraceFilterError",
    "ConfigError",
    "PropagationError",
    "EmptyContextError",
    "InvalidTraceContextError",
    "MissingTargetHeadersError",
]
