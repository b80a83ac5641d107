"""HTTP stream filter API and the example tracing filter."""

from tracefilter.filter.api import Buffer, DestroyReason, FilterCallbacks, StatusType
from tracefilter.filter.base import StreamFilter
from tracefilter.filter.config import FilterConfig, parse_filter_config
from tracefilter.filter.simple import SimpleFilter, filter_factory

__all__ = [
    "Buffer",
    "DestroyReason",
    "FilterCallbacks",
    "StatusType",
    "StreamFilter",
    "FilterConfig",
    "parse_filter_config",
    "SimpleFilter",
    "filter_factory",
]
