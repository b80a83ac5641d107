"""Case-insensitive HTTP header map used as a propagation source and sink."""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple


class HeaderMap(MutableMapping):
    """
    Header mapping with case-insensitive keys.

    The spelling of the most recent write is kept for iteration, lookups
    ignore case. One value per header name.
    """

    def __init__(self, headers: Optional[Mapping[str, str]] = None) -> None:
        self._store: Dict[str, Tuple[str, str]] = {}
        if headers:
            self.update(headers)

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        self._store[key.lower()] = (key, value)

    def __delitem__(self, key: str) -> None:
        del self._store[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._store

    def copy(self) -> "HeaderMap":
        return HeaderMap(self)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"


def get_header(headers: Mapping[str, str], name: str) -> str:
    """
    Case-insensitive header lookup on any mapping.

    Returns:
        The header value, or "" when absent
    """
    if isinstance(headers, HeaderMap):
        return headers.get(name) or ""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value or ""
    return ""


def set_header(headers: MutableMapping, name: str, value: str) -> None:
    """Set a header, replacing any existing spelling of the same name."""
    if not isinstance(headers, HeaderMap):
        lowered = name.lower()
        for key in [k for k in headers if k.lower() == lowered and k != name]:
            del headers[key]
    headers[name] = value


def remove_header(headers: MutableMapping, name: str) -> None:
    """Delete every spelling of a header; absent names are ignored."""
    if isinstance(headers, HeaderMap):
        headers.pop(name, None)
        return
    lowered = name.lower()
    for key in [k for k in headers if k.lower() == lowered]:
        del headers[key]
