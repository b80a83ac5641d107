"""Sampling decisions for spans continuing (or starting) a B3 trace."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tracefilter.tracer.span_context import SpanContext


@dataclass(frozen=True)
class SamplingResult:
    sampled: bool
    # "debug", "parent" or "rate"
    decided_by: str


class Sampler:
    """
    Head sampler that honors upstream B3 decisions.

    The order is: debug flag, then the parent's sampled value, then a fixed
    probability for traces nobody has decided on yet.
    """

    def __init__(self, sample_rate: float = 1.0) -> None:
        if not 0.0 <= sample_rate <= 1.0:
            raise ValueError("sample_rate must be between 0.0 and 1.0")
        self.sample_rate = sample_rate

    def should_sample(self, parent: Optional["SpanContext"] = None) -> SamplingResult:
        if parent is not None:
            if parent.debug:
                return SamplingResult(sampled=True, decided_by="debug")
            if parent.sampled is not None:
                return SamplingResult(sampled=parent.sampled, decided_by="parent")
        return SamplingResult(sampled=random.random() < self.sample_rate, decided_by="rate")
