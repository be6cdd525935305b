"""Data models for the scraper pipeline."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, NamedTuple

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ParsedUrl:
    """A URL decomposed into the parts needed to open a connection."""

    scheme: str
    host: str
    port: int
    path: str = "/"

    @property
    def default_port(self) -> bool:
        return self.port == DEFAULT_PORTS[self.scheme]

    def host_header(self) -> str:
        """Value for the ``Host`` request header (port only when non-default)."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        return host if self.default_port else f"{host}:{self.port}"

    def geturl(self) -> str:
        return f"{self.scheme}://{self.host_header()}{self.path}"


class HttpHeaders(Mapping):
    """Ordered, case-insensitive response headers.

    Repeated header names are kept in order; lookups return the last value,
    which is what matters for ``Location`` and ``Content-Length``.
    """

    def __init__(self, items: list[tuple[str, str]] | None = None) -> None:
        self._items: list[tuple[str, str]] = list(items or [])

    def add(self, name: str, value: str) -> None:
        self._items.append((name, value))

    def get_all(self, name: str) -> list[str]:
        key = name.lower()
        return [v for n, v in self._items if n.lower() == key]

    def items_raw(self) -> list[tuple[str, str]]:
        return list(self._items)

    def __getitem__(self, name: str) -> str:
        values = self.get_all(name)
        if not values:
            raise KeyError(name)
        return values[-1]

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._items:
            if name.lower() not in seen:
                seen.add(name.lower())
                yield name

    def __len__(self) -> int:
        return len({n.lower() for n, _ in self._items})

    def __repr__(self) -> str:
        return f"HttpHeaders({self._items!r})"


@dataclass
class HttpResponse:
    """One parsed HTTP/1.1 response."""

    status_code: int
    reason: str
    headers: HttpHeaders
    body: bytes
    url: str = ""

    @property
    def is_redirect(self) -> bool:
        return self.status_code in (301, 302, 303, 307, 308)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def text(self) -> str:
        """Decode the body using the ``charset`` of ``Content-Type`` (UTF-8 by default)."""
        charset = "utf-8"
        for param in self.headers.get("Content-Type", "").split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                charset = value.strip('"')
        try:
            return self.body.decode(charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


class SearchHit(NamedTuple):
    """One OpenSearch result: article title and its URL."""

    title: str
    url: str


@dataclass(frozen=True)
class WikipediaPage:
    """Structured content extracted from one article."""

    title: str
    url: str
    summary: str = ""
    sections: tuple[str, ...] = field(default_factory=tuple)
    links: tuple[str, ...] = field(default_factory=tuple)
    images: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("sections", "links", "images"):
            data[key] = list(data[key])
        return data
