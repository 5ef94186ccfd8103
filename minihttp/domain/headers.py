"""Ordered HTTP header collection with case-insensitive lookup."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


@dataclass
class HttpHeader:
    """A single header line as it appears on the wire."""

    name: str
    value: str

    def matches(self, name: str) -> bool:
        """Return True when the header name equals ``name`` ignoring case."""
        return self.name.lower() == name.lower()

    def __str__(self) -> str:
        return f"{self.name}: {self.value}"


class HeaderSet:
    """Headers kept in insertion order.

    Parsing appends every line, so duplicates survive on requests. The
    mutation helpers treat the name as a unique key: ``set_or_add`` replaces
    the first match in place or appends, ``remove`` drops the first match.
    """

    def __init__(self, headers: Optional[Iterable[HttpHeader]] = None) -> None:
        self._headers: list[HttpHeader] = [
            HttpHeader(header.name, header.value) for header in headers or []
        ]

    def add(self, name: str, value: str) -> None:
        """Append a header without looking for an existing one."""
        self._headers.append(HttpHeader(name, value))

    def get(self, name: str) -> Optional[HttpHeader]:
        """Return the first header named ``name`` or None."""
        for header in self._headers:
            if header.matches(name):
                return header
        return None

    def get_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of the first header named ``name``."""
        header = self.get(name)
        return header.value if header is not None else default

    def set_or_add(self, name: str, value: str) -> None:
        """Replace the value of an existing header or append a new one."""
        header = self.get(name)
        if header is not None:
            header.value = value
        else:
            self.add(name, value)

    def remove(self, name: str) -> None:
        """Delete the first header named ``name``; no-op when absent."""
        for index, header in enumerate(self._headers):
            if header.matches(name):
                del self._headers[index]
                return

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[HttpHeader]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"HeaderSet({self._headers!r})"
