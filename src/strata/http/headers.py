"""Immutable, case-insensitive HTTP headers.

Implements ``Mapping[str, str]``. Stores ``(name, value)`` pairs in
insertion order; every ``with_*`` call returns a new ``Headers``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header (e.g. multiple ``Set-Cookie``).
    Names keep the casing they were added with.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: Iterable[tuple[str, str]] = ()) -> None:
        object.__setattr__(self, "_raw", tuple((str(n), str(v)) for n, v in raw))

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | None) -> Headers:
        """Build headers from a plain ``{name: value}`` mapping."""
        return cls(tuple((headers or {}).items()))

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower()
        for name, value in self._raw:
            if name.lower() == key_lower:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower()
        return any(name.lower() == key_lower for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self.get_list(k)!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*, in the order they were added."""
        key_lower = key.lower()
        return [value for name, value in self._raw if name.lower() == key_lower]

    def get_line(self, key: str) -> str:
        """Return all values for *key* joined by ``", "`` (empty if missing)."""
        return ", ".join(self.get_list(key))

    def with_added(self, name: str, value: str) -> Headers:
        """Return new headers with *value* appended to *name*."""
        return Headers((*self._raw, (name, value)))

    def with_replaced(self, name: str, value: str) -> Headers:
        """Return new headers where *name* has exactly one value."""
        return Headers((*self.without(name)._raw, (name, value)))

    def without(self, name: str) -> Headers:
        """Return new headers with every value of *name* removed."""
        name_lower = name.lower()
        return Headers(pair for pair in self._raw if pair[0].lower() != name_lower)

    @property
    def raw(self) -> tuple[tuple[str, str], ...]:
        """Access the raw ``(name, value)`` pairs."""
        return self._raw
