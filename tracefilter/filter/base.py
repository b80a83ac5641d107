"""Pass-through stream filter; subclasses override only the phases they need."""

from __future__ import annotations

from tracefilter.filter.api import (
    Buffer,
    DestroyReason,
    RequestHeaderMap,
    RequestTrailerMap,
    ResponseHeaderMap,
    ResponseTrailerMap,
    StatusType,
)


class StreamFilter:
    """
    One instance per HTTP stream.

    Every hook defaults to letting the stream continue unchanged.
    ``end_stream`` is True when no body (or no further body) follows.
    """

    # request path

    def decode_headers(self, headers: RequestHeaderMap, end_stream: bool) -> StatusType:
        return StatusType.CONTINUE

    def decode_data(self, buffer: Buffer, end_stream: bool) -> StatusType:
        """May be called several times per request body."""
        return StatusType.CONTINUE

    def decode_trailers(self, trailers: RequestTrailerMap) -> StatusType:
        return StatusType.CONTINUE

    # response path

    def encode_headers(self, headers: ResponseHeaderMap, end_stream: bool) -> StatusType:
        return StatusType.CONTINUE

    def encode_data(self, buffer: Buffer, end_stream: bool) -> StatusType:
        """May be called several times per response body."""
        return StatusType.CONTINUE

    def encode_trailers(self, trailers: ResponseTrailerMap) -> StatusType:
        return StatusType.CONTINUE

    # stream end

    def on_log(self) -> None:
        """Called when the stream has ended."""

    def on_log_downstream_start(self) -> None:
        """Called when a new request arrives, if that access log type is enabled."""

    def on_log_downstream_periodic(self) -> None:
        """Called on periodic access log records, if enabled."""

    def on_destroy(self, reason: DestroyReason) -> None:
        """Callbacks are already released here; only filter state may be used."""
