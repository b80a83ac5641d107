"""Hex encoding helpers for B3 trace and span identifiers."""

from __future__ import annotations

import re

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def _check_hex(hex_string: str, lengths: tuple, kind: str) -> None:
    if len(hex_string) not in lengths:
        raise ValueError(f"{kind} must be {' or '.join(map(str, lengths))} hex characters, got {len(hex_string)}")
    if not _HEX_RE.fullmatch(hex_string):
        raise ValueError(f"{kind} is not hex: {hex_string!r}")


def format_trace_id(trace_id: int, wide: bool = True) -> str:
    """
    Format a trace id as lowercase hex.

    Args:
        trace_id: Trace id as an unsigned integer
        wide: 32 characters if True, else 16 (64-bit ids)

    Returns:
        Fixed-width hex string
    """
    return format(trace_id, "032x" if wide else "016x")


def format_span_id(span_id: int) -> str:
    """
    Format a span id as lowercase hex.

    Returns:
        16-character hex string
    """
    return format(span_id, "016x")


def parse_trace_id(hex_string: str) -> int:
    """
    Parse a 16 or 32 character hex trace id.

    Raises:
        ValueError: if the string has the wrong length or is not hex
    """
    _check_hex(hex_string, (16, 32), "trace id")
    return int(hex_string, 16)


def parse_span_id(hex_string: str) -> int:
    """
    Parse a 16 character hex span id.

    Raises:
        ValueError: if the string has the wrong length or is not hex
    """
    _check_hex(hex_string, (16,), "span id")
    return int(hex_string, 16)
