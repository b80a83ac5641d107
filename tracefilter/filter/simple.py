"""Example filter: B3 propagation around a span per direction, plus local reply
and response body rewrite demos."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from tracefilter.context.headers import HeaderMap
from tracefilter.context.propagators import (
    PropagationStyle,
    extract_parent_context,
    inject,
)
from tracefilter.errors import PropagationError
from tracefilter.filter.api import (
    Buffer,
    FilterCallbacks,
    RequestHeaderMap,
    ResponseHeaderMap,
    StatusType,
)
from tracefilter.filter.base import StreamFilter
from tracefilter.filter.config import FilterConfig
from tracefilter.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

UPDATE_UPSTREAM_BODY = "upstream response body updated by the simple plugin"
LOCAL_REPLY_PATH = "/localreply_by_config"
UPDATE_UPSTREAM_RESPONSE_PATH = "/update_upstream_response"
RESPONSE_MARKER_HEADER = "Rsp-Header-From-Python"


class SimpleFilter(StreamFilter):
    """Traces both directions of a stream and propagates B3 headers."""

    def __init__(
        self,
        callbacks: FilterCallbacks,
        config: FilterConfig,
        tracer: Tracer,
        propagation_style: PropagationStyle = PropagationStyle.MULTI,
    ) -> None:
        self.callbacks = callbacks
        self.config = config
        self.tracer = tracer
        self.propagation_style = propagation_style
        self.path = ""

    def _trace_headers(self, name: str, headers: HeaderMap, tags: Dict[str, str]) -> None:
        parent = extract_parent_context(headers)
        with self.tracer.start_span(name, parent_context=parent) as span:
            for key, value in tags.items():
                span.tag(key, value)
            try:
                inject(headers, span.context, self.propagation_style)
            except PropagationError as e:
                logger.debug("skipping b3 header injection: %s", e)

    def _send_local_reply(self) -> StatusType:
        body = f"{self.config.echo_body}, path: {self.path}\r\n"
        self.callbacks.send_local_reply(200, body, None, 0, "")
        return StatusType.LOCAL_REPLY

    def decode_headers(self, headers: RequestHeaderMap, end_stream: bool) -> StatusType:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("+++")
            for key, value in headers.items():
                lowered = key.lower()
                if lowered == "b3" or lowered.startswith("x-b3"):
                    logger.debug('%s: "%s"', key, value)
            logger.debug("---")

        self._trace_headers(
            "test span in decode headers",
            headers,
            {"test-tag": "test-value", "direction": self.config.direction},
        )

        self.path = headers.get(":path", "")
        logger.debug("get path %s", self.path)

        if self.path == LOCAL_REPLY_PATH:
            return self._send_local_reply()
        return StatusType.CONTINUE

    def encode_headers(self, headers: ResponseHeaderMap, end_stream: bool) -> StatusType:
        # Response headers rarely carry B3; the span then starts a new trace.
        self._trace_headers(
            "test span in encode headers",
            headers,
            {"test-tag2": "test-value2", "direction": self.config.direction},
        )

        if self.path == UPDATE_UPSTREAM_RESPONSE_PATH:
            headers["Content-Length"] = str(len(UPDATE_UPSTREAM_BODY.encode("utf-8")))
        headers[RESPONSE_MARKER_HEADER] = "bar-test"
        return StatusType.CONTINUE

    def encode_data(self, buffer: Buffer, end_stream: bool) -> StatusType:
        if self.path == UPDATE_UPSTREAM_RESPONSE_PATH:
            if end_stream:
                buffer.set_string(UPDATE_UPSTREAM_BODY)
            else:
                buffer.reset()
        return StatusType.CONTINUE

    def on_log(self) -> None:
        code: Optional[int] = self.callbacks.response_code()
        logger.debug("response code %s", code)


def filter_factory(
    config: FilterConfig,
    tracer: Tracer,
    propagation_style: PropagationStyle = PropagationStyle.MULTI,
) -> Callable[[FilterCallbacks], SimpleFilter]:
    """Build a per-stream constructor sharing one config and one tracer."""

    def factory(callbacks: FilterCallbacks) -> SimpleFilter:
        return SimpleFilter(callbacks, config, tracer, propagation_style)

    return factory
