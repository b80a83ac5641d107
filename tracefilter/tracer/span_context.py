"""Immutable trace metadata."""

from dataclasses import dataclass
from typing import Optional

from tracefilter.utils.helpers import format_span_id, format_trace_id, parse_trace_id

_UINT64_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class TraceID:
    """64 or 128-bit trace identifier; ``high == 0`` means a 64-bit id."""

    high: int = 0
    low: int = 0

    def empty(self) -> bool:
        return self.high == 0 and self.low == 0

    def to_int(self) -> int:
        return (self.high << 64) | self.low

    @classmethod
    def from_int(cls, value: int) -> "TraceID":
        return cls(high=(value >> 64) & _UINT64_MASK, low=value & _UINT64_MASK)

    @classmethod
    def from_hex(cls, hex_string: str) -> "TraceID":
        return cls.from_int(parse_trace_id(hex_string))

    def __str__(self) -> str:
        return format_trace_id(self.to_int(), wide=self.high != 0)


@dataclass(frozen=True)
class SpanContext:
    trace_id: TraceID = TraceID()
    span_id: int = 0
    parent_id: Optional[int] = None
    sampled: Optional[bool] = None  # None = defer to the receiver
    debug: bool = False

    def is_valid(self) -> bool:
        return not self.trace_id.empty() and self.span_id > 0

    def is_empty(self) -> bool:
        return self == _EMPTY_CONTEXT

    def is_sampled(self) -> Optional[bool]:
        """Effective sampling decision, with debug forcing it on."""
        if self.debug:
            return True
        return self.sampled

    def __str__(self) -> str:
        parent = format_span_id(self.parent_id) if self.parent_id is not None else "-"
        return (
            f"trace_id={self.trace_id} span_id={format_span_id(self.span_id)} "
            f"parent_id={parent} sampled={self.sampled} debug={self.debug}"
        )


_EMPTY_CONTEXT = SpanContext()
