"""Span implementation - minimal wrapper around OpenTelemetry Span."""

from __future__ import annotations

import time
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from opentelemetry.trace import Span as OTelSpan, Status, StatusCode

from tracefilter.tracer.span_context import SpanContext

if TYPE_CHECKING:
    from tracefilter.tracer.tracer import Tracer


class SpanStatus(Enum):
    UNSET = 0
    OK = 1
    ERROR = 2


class Span:
    """
    Minimal wrapper around OpenTelemetry Span.

    Carries the B3 view of the span (``context``) next to the OTel span.
    """

    def __init__(
        self,
        otel_span: OTelSpan,
        tracer: "Tracer",
        context: SpanContext,
        name: str,
    ) -> None:
        self._otel_span = otel_span
        self.tracer = tracer
        self.context = context
        self.name = name
        self._ended = False

        self.start_time_ns = time.time_ns()
        self.end_time_ns: Optional[int] = None

        self.status = SpanStatus.UNSET
        self.status_description: Optional[str] = None

        self._attributes: Dict[str, Any] = {}

    @property
    def attributes(self) -> Dict[str, Any]:
        return self._attributes

    @property
    def is_recording(self) -> bool:
        return self._otel_span.is_recording()

    @property
    def duration_ns(self) -> Optional[int]:
        """Get span duration in nanoseconds."""
        if self.end_time_ns is None:
            return None
        return self.end_time_ns - self.start_time_ns

    def set_attribute(self, key: str, value: Any) -> None:
        """Set an attribute on the span."""
        if self._ended:
            return
        self._attributes[key] = value
        self._otel_span.set_attribute(key, value)

    # zipkin-style alias
    tag = set_attribute

    def record_exception(self, error: BaseException) -> None:
        """Record an exception event on the span."""
        if self._ended:
            return
        self._otel_span.record_exception(error)
        self.set_status(SpanStatus.ERROR, str(error))

    def set_status(self, status: SpanStatus, description: Optional[str] = None) -> None:
        """Set the span status."""
        if self._ended:
            return

        self.status = status
        self.status_description = description

        if status == SpanStatus.OK:
            otel_status = Status(status_code=StatusCode.OK)
        elif status == SpanStatus.ERROR:
            otel_status = Status(status_code=StatusCode.ERROR, description=description)
        else:
            otel_status = Status(status_code=StatusCode.UNSET)
        self._otel_span.set_status(otel_status)

    def end(self) -> None:
        """
        End the span.

        Enrichment processors run BEFORE the OTel span ends (span is still
        mutable). Export processors run after, inside OTel.
        """
        if self._ended:
            return

        self.end_time_ns = time.time_ns()
        if self.status == SpanStatus.UNSET:
            self.set_status(SpanStatus.OK)

        self.tracer._run_enrichment_processors(self)
        self._otel_span.end(end_time=self.end_time_ns)
        self._ended = True

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc:
            self.record_exception(exc)
        self.end()
        return False

