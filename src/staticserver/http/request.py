"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into immutable HTTPRequest objects.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /docs/index.html HTTP/1.1\r\n      ← REQUEST LINE             │
    │   ─┬─ ───────┬──────── ───┬────                                     │
    │  Method    Target      Version                                      │
    │                                                                      │
    │   Host: localhost:8000\r\n               ← HEADERS                  │
    │   Accept: text/html\r\n                    "Name: Value" per line    │
    │   \r\n                                   ← BLANK LINE (terminator)  │
    │                                                                      │
    │   ...                                    ← BODY (whatever is left)  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. Split the whole message on "\n". Each line still ends in "\r".
2. Request line: split on single spaces into METHOD, TARGET, VERSION.
   - METHOD must be one of the seven HTTPMethod values (case-sensitive)
   - VERSION, with its trailing "\r" removed, must be exactly "HTTP/1.1"
3. Header lines: split on the FIRST ": ".
   - A blank line ("\r", or "" from bare-LF clients) ends the header section
   - A line with no ": " is skipped
   - Names are stored exactly as sent (no lowercasing)
4. Body: every remaining line, joined back with "\n".

The method is checked before the version, so "FOO / HTTP/9.9" is an
InvalidMethod, not an InvalidVersion.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Union

from .errors import InvalidMethod, InvalidVersion
from .status_codes import HTTPMethod, HTTP_VERSION


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Created once per connection by RequestParser and never modified
    afterwards: the dataclass is frozen and headers are exposed through a
    read-only mapping.

    Attributes:
        method:  The request method.
        path:    The raw request target, e.g. "/docs/a.html?x=1".
        headers: Header name → value in arrival order. Names are NOT
                 case-normalized: "host" and "Host" are different keys.
        body:    Everything after the blank line, possibly "".
    """

    method: HTTPMethod
    path: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: str = ""

    def __post_init__(self):
        # Wrap whatever mapping we were given so callers can't mutate it
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Case-insensitive header lookup.

        The stored names keep their original case; this helper is for
        callers who don't care how the client spelled them.
        """
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default


class RequestParser:
    """
    Parses raw request data into HTTPRequest objects.

    The parser holds no state between calls; one instance can be shared
    by every worker thread.

    Usage:
        parser = RequestParser()
        request = parser.parse(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
    """

    def __init__(self, encoding: str = "utf-8"):
        """
        Args:
            encoding: Encoding used to decode raw bytes. Undecodable bytes
                      are replaced, never fatal.
        """
        self.encoding = encoding

    def parse(self, data: Union[bytes, str]) -> HTTPRequest:
        """
        Parse raw HTTP request data.

        Args:
            data: Raw request as read from the socket (bytes) or already
                  decoded text.

        Returns:
            The parsed HTTPRequest.

        Raises:
            InvalidMethod: Method token missing or unknown.
            InvalidVersion: Version token missing, extra tokens on the
                            request line, or version is not HTTP/1.1.
        """
        if isinstance(data, bytes):
            data = data.decode(self.encoding, errors="replace")

        lines = data.split("\n")

        # ─────────────────────────────────────────────────────────────────
        # REQUEST LINE
        # ─────────────────────────────────────────────────────────────────
        method, path = self._parse_request_line(lines[0])

        # ─────────────────────────────────────────────────────────────────
        # HEADERS
        # ─────────────────────────────────────────────────────────────────
        # body_start is the index of the first line after the terminator.
        # With no terminator at all it runs past the end and the body is "".
        headers: dict[str, str] = {}
        body_start = len(lines)

        for index, line in enumerate(lines[1:], start=1):
            if line in ("\r", ""):
                # Blank line, CRLF or bare LF, ends the headers
                body_start = index + 1
                break

            name, separator, value = line.removesuffix("\r").partition(": ")
            if not separator:
                logger.debug(f"Skipping malformed header line: {line!r}")
                continue

            headers[name] = value

        # ─────────────────────────────────────────────────────────────────
        # BODY
        # ─────────────────────────────────────────────────────────────────
        body = "\n".join(lines[body_start:])

        return HTTPRequest(
            method=method,
            path=path,
            headers=MappingProxyType(headers),
            body=body,
        )

    def _parse_request_line(self, line: str) -> tuple[HTTPMethod, str]:
        """
        Parse "METHOD SP TARGET SP VERSION".

        Tokens are split on single spaces, so "GET  / HTTP/1.1" (two
        spaces) yields an empty target and a misplaced version.

        Returns:
            Tuple of (method, target).
        """
        # The "\r" of the line terminator belongs to whichever token is last
        tokens = line.removesuffix("\r").split(" ")

        # ---------------------------------------------------------------------
        # Method (checked first)
        # ---------------------------------------------------------------------
        try:
            method = HTTPMethod(tokens[0])
        except ValueError:
            raise InvalidMethod(f"Invalid method: {tokens[0]!r}")

        # ---------------------------------------------------------------------
        # Version
        # ---------------------------------------------------------------------
        if len(tokens) < 3:
            raise InvalidVersion(f"Missing version in request line: {line!r}")
        if len(tokens) > 3:
            raise InvalidVersion(f"Too many tokens in request line: {line!r}")

        version = tokens[2]
        if version != HTTP_VERSION:
            raise InvalidVersion(f"Unsupported HTTP version: {version!r}")

        return method, tokens[1]


def parse_request(data: Union[bytes, str]) -> HTTPRequest:
    """
    Convenience function to parse an HTTP request with default settings.

    Args:
        data: Raw HTTP request bytes or text.

    Returns:
        Parsed HTTPRequest object.
    """
    return RequestParser().parse(data)
