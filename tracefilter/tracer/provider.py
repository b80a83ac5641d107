"""TracerProvider using OpenTelemetry SDK."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from opentelemetry.sdk.trace import TracerProvider as OTelTracerProvider
from opentelemetry.sdk.trace import SpanProcessor as OTelSpanProcessor
from opentelemetry.sdk.resources import Resource as OTelResource

if TYPE_CHECKING:
    from tracefilter.processors.sampler import Sampler
    from tracefilter.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class SpanProcessor:
    """
    Base span processor interface for tracefilter enrichment processors.

    Enrichment processors run BEFORE span.end() (span is mutable).
    Export processors use OTel's SpanProcessor interface (run AFTER span.end()).
    """

    def on_end(self, span) -> None:
        """
        Called when a span ends, before the OTel span is closed.

        Args:
            span: tracefilter Span instance (mutable)
        """
        pass

    def shutdown(self) -> None:
        """Shutdown the processor."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush any pending spans."""
        pass


class TracerProvider:
    """
    TracerProvider using OpenTelemetry SDK.

    Build one per process and hand it (or its tracers) to the filters that
    need it. Separates enrichment processors (ours) from export processors
    (OTel).
    """

    def __init__(
        self,
        resource: Optional[Dict[str, str]] = None,
        sampler: Optional["Sampler"] = None,
    ) -> None:
        """
        Initialize TracerProvider with OpenTelemetry.

        Args:
            resource: Resource attributes dictionary (converted to OTel Resource)
            sampler: Head sampler consulted when the parent has no decision
        """
        otel_resource = OTelResource.create(resource or {})
        self._otel_provider = OTelTracerProvider(resource=otel_resource)
        self.resource = resource or {}

        self._enrichment_processors: List[SpanProcessor] = []
        self._export_processors: List[OTelSpanProcessor] = []

        self._tracers: Dict[str, Any] = {}
        self._lock = threading.Lock()

        self.sampler: Optional["Sampler"] = sampler

    def get_tracer(self, name: str) -> "Tracer":
        """
        Get a tracer by name, cached per instrumentation scope.

        Returns:
            tracefilter Tracer instance (wraps OTel Tracer)
        """
        with self._lock:
            tracer = self._tracers.get(name)
            if tracer is None:
                from tracefilter.tracer.tracer import Tracer
                tracer = Tracer(self, name)
                self._tracers[name] = tracer
            return tracer

    def add_span_processor(self, processor: Any) -> None:
        """
        Add a span processor.

        OTel processors are registered with the OTel provider; anything else is
        treated as an enrichment processor.
        """
        if isinstance(processor, OTelSpanProcessor):
            self._otel_provider.add_span_processor(processor)
            self._export_processors.append(processor)
        else:
            self._enrichment_processors.append(processor)

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush all processors."""
        self._otel_provider.force_flush(timeout_millis=int(timeout * 1000) if timeout else 30000)

        for processor in self._enrichment_processors:
            try:
                processor.force_flush(timeout=timeout)
            except Exception:
                logger.warning("span processor flush failed", exc_info=True)

    def shutdown(self) -> None:
        """Shutdown the provider and all processors."""
        self._otel_provider.shutdown()

        for processor in self._enrichment_processors:
            try:
                processor.shutdown()
            except Exception:
                logger.warning("span processor shutdown failed", exc_info=True)
