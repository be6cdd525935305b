"""URL parsing and query encoding for the hand-rolled HTTP client."""

from __future__ import annotations

import string
from urllib.parse import quote, urljoin

from wikiscraper.scraper.errors import MalformedUrlError, UnsupportedSchemeError
from wikiscraper.scraper.models import DEFAULT_PORTS, ParsedUrl

_UNRESERVED = frozenset((string.ascii_letters + string.digits + "-_.~").encode("ascii"))
# Reserved and sub-delimiter characters plus "%" so existing escapes survive.
_PATH_SAFE = "/%?#[]@!$&'()*+,;=:~-._"


def parse_url(raw: str) -> ParsedUrl:
    """Split *raw* into scheme, host, port and path (query included).

    The fragment and any ``user:password@`` prefix are dropped since neither
    is ever sent on the wire.  Existing percent-escapes are left untouched;
    non-ASCII path characters are percent-encoded as UTF-8 and a non-ASCII
    host is converted with IDNA, so the result is always plain ASCII.

    Raises:
        MalformedUrlError: No ``://`` delimiter, empty or unencodable host,
            or invalid port.
        UnsupportedSchemeError: Scheme other than ``http`` / ``https``.
    """
    text = raw.strip()
    scheme, sep, rest = text.partition("://")
    if not sep or not scheme:
        raise MalformedUrlError(f"no scheme delimiter in {raw!r}")

    scheme = scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise UnsupportedSchemeError(f"unsupported scheme {scheme!r} in {raw!r}")

    rest = rest.split("#", 1)[0]
    cut = len(rest)
    for delim in "/?":
        pos = rest.find(delim)
        if pos != -1:
            cut = min(cut, pos)
    authority, path = rest[:cut], rest[cut:]
    if not path.startswith("/"):
        path = "/" + path
    path = quote(path, safe=_PATH_SAFE)

    authority = authority.rpartition("@")[2]
    host, port = _split_host_port(authority, raw)
    if port is None:
        port = DEFAULT_PORTS[scheme]

    return ParsedUrl(scheme=scheme, host=_ascii_host(host, raw), port=port, path=path)


def _ascii_host(host: str, raw: str) -> str:
    host = host.lower()
    if host.isascii():
        return host
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise MalformedUrlError(f"cannot encode host {host!r} in {raw!r}: {exc}") from exc


def _split_host_port(authority: str, raw: str) -> tuple[str, int | None]:
    if authority.startswith("["):
        end = authority.find("]")
        if end == -1:
            raise MalformedUrlError(f"unterminated IPv6 host in {raw!r}")
        host, tail = authority[1:end], authority[end + 1:]
        if tail and not tail.startswith(":"):
            raise MalformedUrlError(f"garbage after IPv6 host in {raw!r}")
        port_text = tail[1:] if tail else ""
    else:
        host, _, port_text = authority.partition(":")

    if not host:
        raise MalformedUrlError(f"empty host in {raw!r}")
    if not port_text:
        return host, None
    if not port_text.isdigit() or not 0 < int(port_text) < 65536:
        raise MalformedUrlError(f"invalid port {port_text!r} in {raw!r}")
    return host, int(port_text)


def resolve_location(base: ParsedUrl, location: str) -> ParsedUrl:
    """Resolve a ``Location`` header value against the URL that returned it."""
    return parse_url(urljoin(base.geturl(), location.strip()))


def encode_query_segment(value: str) -> str:
    """Percent-encode *value* for use as one query parameter value.

    Every UTF-8 byte outside ``A-Z a-z 0-9 - _ . ~`` becomes ``%XX`` with
    uppercase hex.  Spaces are always written as ``%20``, never ``+``.
    """
    return "".join(
        chr(b) if b in _UNRESERVED else f"%{b:02X}" for b in value.encode("utf-8")
    )
