"""Types the host proxy exchanges with HTTP stream filters."""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Optional, Protocol

from tracefilter.context.headers import HeaderMap

RequestHeaderMap = HeaderMap
ResponseHeaderMap = HeaderMap
RequestTrailerMap = HeaderMap
ResponseTrailerMap = HeaderMap


class StatusType(Enum):
    CONTINUE = "continue"
    # request answered by the filter itself
    LOCAL_REPLY = "local_reply"
    # filter suspended, resumed through FilterCallbacks.continue_stream
    RUNNING = "running"


class DestroyReason(Enum):
    NORMAL = "normal"
    TERMINATE = "terminate"


class Buffer:
    """A body chunk handed to decode_data/encode_data; editable in place."""

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytearray(data)

    def bytes(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def set_string(self, value: str) -> None:
        self._data = bytearray(value.encode("utf-8"))

    def set_bytes(self, value: bytes) -> None:
        self._data = bytearray(value)

    def reset(self) -> None:
        self._data.clear()

    def __str__(self) -> str:
        return self._data.decode("utf-8", errors="replace")


class FilterCallbacks(Protocol):
    """Host-side handle; only valid for the lifetime of its stream."""

    def send_local_reply(
        self,
        response_code: int,
        body: str,
        headers: Optional[Mapping[str, str]] = None,
        grpc_status: int = -1,
        details: str = "",
    ) -> None:
        ...

    def continue_stream(self, status: StatusType) -> None:
        ...

    def response_code(self) -> Optional[int]:
        ...
