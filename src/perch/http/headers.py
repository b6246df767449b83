"""Read-only multi-valued mappings for request headers and query strings.

Both decode once at construction. Header names are case-insensitive;
query keys are not.
"""

from collections.abc import Iterable, Iterator, Mapping
from urllib.parse import parse_qsl


class _MultiMapping(Mapping[str, str]):
    """First-value mapping over ``key -> [values]`` with ``get_list``."""

    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        data: dict[str, list[str]] = {}
        for key, value in pairs:
            data.setdefault(self._key(key), []).append(value)
        self._data = data

    @staticmethod
    def _key(key: str) -> str:
        return key

    def __getitem__(self, key: str) -> str:
        return self._data[self._key(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        """Return every value for *key* (empty list when absent)."""
        return list(self._data.get(self._key(key), ()))


class Headers(_MultiMapping):
    """Case-insensitive request headers built from raw ASGI byte pairs."""

    __slots__ = ("raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self.raw = raw
        super().__init__(
            (name.decode("latin-1"), value.decode("latin-1")) for name, value in raw
        )

    @staticmethod
    def _key(key: str) -> str:
        return key.lower()


class QueryParams(_MultiMapping):
    """Query string parameters; blank values are kept."""

    __slots__ = ("raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        self.raw = query_string
        super().__init__(parse_qsl(query_string.decode("latin-1"), keep_blank_values=True))
