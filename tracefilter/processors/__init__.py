"""Span processors and supporting utilities."""

from tracefilter.processors.logging_processor import LoggingSpanProcessor
from tracefilter.processors.sampler import Sampler, SamplingResult

__all__ = [
    "Sampler",
    "SamplingResult",
    "LoggingSpanProcessor",
]
