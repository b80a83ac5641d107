"""Tracer using OpenTelemetry SDK, parented from B3 span contexts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from opentelemetry import context as context_api
from opentelemetry.trace import NonRecordingSpan, TraceFlags, set_span_in_context
from opentelemetry.trace import SpanContext as OTelSpanContext
from opentelemetry.trace import Tracer as OTelTracer
from opentelemetry.sdk.trace.id_generator import RandomIdGenerator

from tracefilter.processors.sampler import Sampler
from tracefilter.tracer.span import Span
from tracefilter.tracer.span_context import SpanContext, TraceID

if TYPE_CHECKING:
    from tracefilter.tracer.provider import TracerProvider

logger = logging.getLogger(__name__)

_id_generator = RandomIdGenerator()
_default_sampler = Sampler()


class Tracer:
    """
    Tracer wrapper that uses OpenTelemetry Tracer internally.

    Parents are given as B3 SpanContext values rather than taken from the
    ambient OTel context, so each filter callback decides its own parent.
    """

    def __init__(self, provider: "TracerProvider", instrumentation_scope: str):
        self._provider = provider
        self.instrumentation_scope = instrumentation_scope
        self._otel_tracer: OTelTracer = provider._otel_provider.get_tracer(instrumentation_scope)

    def start_span(
        self,
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
        parent_context: Optional[SpanContext] = None,
    ) -> Span:
        """
        Start a new span.

        Args:
            name: Span name
            attributes: Optional attributes dictionary
            parent_context: Extracted B3 context. A valid one makes this a
                child span; a sampling-only one still decides sampling.

        Returns:
            tracefilter Span instance (wraps OTel Span)
        """
        debug = bool(parent_context and parent_context.debug)
        sampler = self._provider.sampler or _default_sampler
        decision = sampler.should_sample(parent_context)
        sampled = decision.sampled
        logger.debug("span %s sampled=%s by %s", name, sampled, decision.decided_by)

        parent_id = None
        if parent_context is not None and parent_context.is_valid():
            flags = TraceFlags.SAMPLED if sampled else TraceFlags.DEFAULT
            remote_parent = OTelSpanContext(
                trace_id=parent_context.trace_id.to_int(),
                span_id=parent_context.span_id,
                is_remote=True,
                trace_flags=TraceFlags(flags),
            )
            otel_span = self._otel_tracer.start_span(
                name=name,
                attributes=attributes,
                context=set_span_in_context(NonRecordingSpan(remote_parent)),
            )
            parent_id = parent_context.span_id
        elif sampled:
            # Empty context: never pick up an ambient span as parent.
            otel_span = self._otel_tracer.start_span(
                name=name,
                attributes=attributes,
                context=context_api.Context(),
            )
        else:
            otel_span = NonRecordingSpan(
                OTelSpanContext(
                    trace_id=_id_generator.generate_trace_id(),
                    span_id=_id_generator.generate_span_id(),
                    is_remote=False,
                    trace_flags=TraceFlags(TraceFlags.DEFAULT),
                )
            )

        otel_context = otel_span.get_span_context()
        context = SpanContext(
            trace_id=TraceID.from_int(otel_context.trace_id),
            span_id=otel_context.span_id,
            parent_id=parent_id,
            sampled=otel_context.trace_flags.sampled,
            debug=debug,
        )
        span = Span(otel_span, self, context, name)
        if attributes:
            span._attributes.update(attributes)
        return span

    def _run_enrichment_processors(self, span: Span) -> None:
        """
        Run enrichment processors before span ends.

        Called by Span.end() before the OTel span is ended. Spans that are not
        recording were sampled out and skip processors.
        """
        if not span.is_recording:
            return
        for processor in self._provider._enrichment_processors:
            try:
                processor.on_end(span)
            except Exception:
                # Processors must not break tracing
                logger.warning("span processor %r failed", processor, exc_info=True)
