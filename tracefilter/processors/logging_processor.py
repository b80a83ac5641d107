"""Span processor that logs spans when they end."""

from __future__ import annotations

import logging
from typing import Optional

from tracefilter.tracer.provider import SpanProcessor
from tracefilter.utils.helpers import format_span_id


class LoggingSpanProcessor(SpanProcessor):
    """Logs a span summary, B3 ids included, using the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("tracefilter.traces")

    def on_end(self, span) -> None:
        ctx = span.context
        parent = format_span_id(ctx.parent_id) if ctx.parent_id is not None else "-"
        self.logger.info(
            "[trace] name=%s trace_id=%s span_id=%s parent_id=%s sampled=%s debug=%s "
            "status=%s duration_ns=%s attrs=%s",
            span.name,
            ctx.trace_id,
            format_span_id(ctx.span_id),
            parent,
            ctx.sampled,
            ctx.debug,
            span.status.name,
            span.duration_ns,
            span.attributes or {},
        )

    def shutdown(self) -> None:
        return None

    def force_flush(self, timeout: Optional[float] = None) -> None:
        return None
