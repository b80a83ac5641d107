"""Build the process-wide tracer provider and filter factory from configuration."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from tracefilter.config import TraceFilterConfig, apply_overrides, load_config
from tracefilter.filter.api import FilterCallbacks
from tracefilter.filter.simple import SimpleFilter, filter_factory
from tracefilter.processors.logging_processor import LoggingSpanProcessor
from tracefilter.processors.sampler import Sampler
from tracefilter.tracer.provider import TracerProvider

logger = logging.getLogger(__name__)

FILTER_TRACER_NAME = "tracefilter.filter"


def init(config: Optional[TraceFilterConfig] = None, **overrides: Any) -> TracerProvider:
    """
    Create a TracerProvider from config.

    Call once per process and pass the result to whatever needs a tracer.
    Without ``config``, configuration is loaded from file/env. ``overrides``
    are applied on top of either.

    Raises:
        ConfigError: configuration is invalid
    """
    if config is None:
        config = load_config(overrides=overrides or None)
    elif overrides:
        config = apply_overrides(config, overrides)
    tracing = config.tracing

    provider = TracerProvider(
        resource={"service.name": tracing.service_name},
        sampler=Sampler(tracing.sample_rate),
    )

    if tracing.exporter == "otlp":
        headers = {"Authorization": f"Bearer {tracing.api_key}"} if tracing.api_key else None
        exporter = OTLPSpanExporter(endpoint=tracing.endpoint, headers=headers)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    elif tracing.exporter == "console":
        provider.add_span_processor(LoggingSpanProcessor())

    logger.info(
        "tracing initialized: service=%s exporter=%s sample_rate=%s propagation=%s",
        tracing.service_name,
        tracing.exporter,
        tracing.sample_rate,
        tracing.propagation_style.value,
    )
    return provider


def create_filter_factory(
    provider: TracerProvider,
    config: Optional[TraceFilterConfig] = None,
) -> Callable[[FilterCallbacks], SimpleFilter]:
    """Per-stream SimpleFilter constructor sharing the provider's tracer."""
    if config is None:
        config = load_config()
    return filter_factory(
        config.filter,
        provider.get_tracer(FILTER_TRACER_NAME),
        config.tracing.propagation_style,
    )
