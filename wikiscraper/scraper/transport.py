"""Minimal HTTP/1.1 client over raw sockets.

Only what the scraper needs: one ``GET`` per connection (``Connection:
close``), ``Content-Length`` / chunked / read-to-EOF body framing, and
redirect following.  TLS is delegated to :mod:`ssl`; everything above the
connection speaks to a :class:`Stream`, so HTTP and HTTPS share one code path.
"""

from __future__ import annotations

import socket
import ssl
from typing import Callable, Mapping, Protocol

from wikiscraper.config import settings
from wikiscraper.scraper.errors import (
    ConnectError,
    ProtocolError,
    TooManyRedirects,
    TruncatedResponseError,
)
from wikiscraper.scraper.models import HttpHeaders, HttpResponse, ParsedUrl
from wikiscraper.scraper.url import parse_url, resolve_location

_CRLF = b"\r\n"
_READ_SIZE = 8192
_MAX_LINE = 64 * 1024
_NO_BODY_STATUSES = (204, 304)


class Stream(Protocol):
    """Byte stream capability shared by plain and TLS connections."""

    def read(self, n: int) -> bytes: ...

    def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...


Connector = Callable[[ParsedUrl, float], Stream]


# ---------------------------------------------------------------------------
# Connection layer
# ---------------------------------------------------------------------------

class SocketStream:
    """Adapt a (possibly TLS-wrapped) socket to the :class:`Stream` shape."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def read(self, n: int) -> bytes:
        try:
            return self._sock.recv(n)
        except OSError as exc:
            raise ConnectError(f"read failed: {exc}") from exc

    def write(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except OSError as exc:
            raise ConnectError(f"write failed: {exc}") from exc

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError:
            pass


def open_stream(url: ParsedUrl, timeout: float) -> Stream:
    """Connect to ``url.host:url.port``, wrapping in TLS for ``https``."""
    try:
        sock = socket.create_connection((url.host, url.port), timeout=timeout)
    except OSError as exc:
        raise ConnectError(f"cannot connect to {url.host}:{url.port}: {exc}") from exc

    if url.scheme == "https":
        context = ssl.create_default_context()
        try:
            sock = context.wrap_socket(sock, server_hostname=url.host)
        except OSError as exc:
            sock.close()
            raise ConnectError(f"TLS handshake with {url.host} failed: {exc}") from exc

    return SocketStream(sock)


# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------

class _ResponseReader:
    """Buffered reads over a :class:`Stream`."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream
        self._buf = bytearray()
        self._eof = False

    def _fill(self) -> bool:
        if self._eof:
            return False
        data = self._stream.read(_READ_SIZE)
        if not data:
            self._eof = True
            return False
        self._buf += data
        return True

    def readline(self) -> bytes | None:
        """Return one line without its terminator, or ``None`` at EOF."""
        while True:
            pos = self._buf.find(b"\n")
            if pos != -1:
                line = bytes(self._buf[:pos])
                del self._buf[: pos + 1]
                return line.rstrip(b"\r")
            if len(self._buf) > _MAX_LINE:
                raise ProtocolError("header or chunk-size line too long")
            if not self._fill():
                if self._buf:
                    line = bytes(self._buf)
                    self._buf.clear()
                    return line
                return None

    def read_exact(self, n: int) -> bytes:
        while len(self._buf) < n:
            if not self._fill():
                raise TruncatedResponseError(
                    f"stream closed after {len(self._buf)} of {n} expected bytes"
                )
        data = bytes(self._buf[:n])
        del self._buf[:n]
        return data

    def read_to_eof(self) -> bytes:
        while self._fill():
            pass
        data = bytes(self._buf)
        self._buf.clear()
        return data


def _parse_status_line(line: bytes | None) -> tuple[int, str]:
    if line is None:
        raise TruncatedResponseError("connection closed before the status line")
    parts = line.decode("latin-1").split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
        raise ProtocolError(f"malformed status line: {line[:100]!r}")
    reason = parts[2].strip() if len(parts) == 3 else ""
    return int(parts[1]), reason


def _read_headers(reader: _ResponseReader) -> HttpHeaders:
    headers = HttpHeaders()
    while True:
        line = reader.readline()
        if line is None:
            raise TruncatedResponseError("connection closed inside the header block")
        if not line:
            return headers
        name, sep, value = line.decode("latin-1").partition(":")
        if not sep or not name.strip():
            raise ProtocolError(f"malformed header line: {line[:100]!r}")
        headers.add(name.strip(), value.strip())


def _read_chunked(reader: _ResponseReader) -> bytes:
    body = bytearray()
    while True:
        line = reader.readline()
        if line is None:
            raise TruncatedResponseError("connection closed before the last chunk")
        size_text = line.split(b";", 1)[0].strip()
        try:
            size = int(size_text, 16)
        except ValueError:
            raise ProtocolError(f"bad chunk size {size_text[:40]!r}") from None
        if size < 0:
            raise ProtocolError(f"bad chunk size {size_text[:40]!r}")
        if size == 0:
            break
        body += reader.read_exact(size)
        if reader.read_exact(2) != _CRLF:
            raise ProtocolError("chunk data not followed by CRLF")

    # Trailer section, ended by an empty line (or EOF from lax servers).
    while True:
        trailer = reader.readline()
        if not trailer:
            return bytes(body)


def _read_body(reader: _ResponseReader, status: int, headers: HttpHeaders) -> bytes:
    if status < 200 or status in _NO_BODY_STATUSES:
        return b""

    encodings = [
        token.strip().lower()
        for value in headers.get_all("Transfer-Encoding")
        for token in value.split(",")
    ]
    if "chunked" in encodings:
        return _read_chunked(reader)

    length = headers.get("Content-Length")
    if length is not None:
        if not length.strip().isdigit():
            raise ProtocolError(f"bad Content-Length {length!r}")
        return reader.read_exact(int(length))

    return reader.read_to_eof()


def build_request(url: ParsedUrl, user_agent: str, extra: Mapping[str, str] | None = None) -> bytes:
    """Serialise a ``GET`` request for *url*.

    ``Host``, ``User-Agent``, ``Connection: close`` and ``Accept: */*`` are
    always sent; caller headers with one of those names are ignored, the
    rest are appended in order.
    """
    headers = [
        ("Host", url.host_header()),
        ("User-Agent", user_agent),
        ("Connection", "close"),
        ("Accept", "*/*"),
    ]
    mandatory = {name.lower() for name, _ in headers}
    headers += [
        (name, value) for name, value in (extra or {}).items() if name.lower() not in mandatory
    ]

    lines = [f"GET {url.path} HTTP/1.1"]
    lines += [f"{name}: {value}" for name, value in headers]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


def read_response(stream: Stream) -> HttpResponse:
    """Read and frame one complete response from *stream*."""
    reader = _ResponseReader(stream)
    status, reason = _parse_status_line(reader.readline())
    headers = _read_headers(reader)
    body = _read_body(reader, status, headers)
    return HttpResponse(status_code=status, reason=reason, headers=headers, body=body)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class HttpTransport:
    """Perform ``GET`` exchanges, one fresh connection per request or redirect hop."""

    def __init__(
        self,
        timeout: float | None = None,
        max_redirects: int | None = None,
        user_agent: str | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.max_redirects = settings.max_redirects if max_redirects is None else max_redirects
        self.user_agent = user_agent or settings.user_agent
        self._connect = connector or open_stream

    def _exchange(self, url: ParsedUrl, headers: Mapping[str, str] | None) -> HttpResponse:
        stream = self._connect(url, self.timeout)
        try:
            stream.write(build_request(url, self.user_agent, headers))
            response = read_response(stream)
        except TimeoutError as exc:
            raise ConnectError(f"timed out talking to {url.host}: {exc}") from exc
        finally:
            stream.close()
        response.url = url.geturl()
        return response

    def request(self, url: str | ParsedUrl, headers: Mapping[str, str] | None = None) -> HttpResponse:
        """``GET`` *url*, following up to ``max_redirects`` redirects.

        Raises:
            MalformedUrlError, UnsupportedSchemeError: *url* or a ``Location``
                header cannot be parsed.
            ConnectError: Connection, TLS or timeout failure.
            ProtocolError, TruncatedResponseError: Bad response framing.
            TooManyRedirects: The redirect chain exceeds ``max_redirects``.
        """
        current = parse_url(url) if isinstance(url, str) else url
        for _ in range(self.max_redirects + 1):
            response = self._exchange(current, headers)
            if not response.is_redirect:
                return response

            location = response.headers.get("Location")
            if not location:
                raise ProtocolError(f"HTTP {response.status_code} without Location header")
            current = resolve_location(current, location)
            print(f"[transport] {response.status_code} → {current.geturl()}")

        raise TooManyRedirects(
            f"more than {self.max_redirects} redirects, last Location was {current.geturl()}"
        )


def http_get(url: str | ParsedUrl, headers: Mapping[str, str] | None = None) -> HttpResponse:
    """Convenience wrapper: ``GET`` *url* with a default :class:`HttpTransport`."""
    return HttpTransport().request(url, headers)
