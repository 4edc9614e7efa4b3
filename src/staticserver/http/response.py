"""
=============================================================================
HTTP RESPONSE BUILDER AND SERIALIZER
=============================================================================

Builds HTTP/1.1 responses and writes them onto the wire byte-for-byte.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE ON THE WIRE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200\r\n                     ← STATUS LINE (no phrase)    │
    │   Content-Type: text/html\r\n          ← HEADERS, insertion order   │
    │   Content-Length: 26\r\n                                            │
    │   Server: PY-SIMPLE-HTTP-SERVER\r\n    ← ALWAYS exactly one, last   │
    │   \r\n                                 ← BLANK LINE                 │
    │   <h1>Hello from disk!</h1>\n          ← BODY bytes, if any         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FRAMING HEADERS
=============================================================================

Content-Type and Content-Length describe the body, so they are DERIVED
from it, never taken from the caller:

    make_response(200,
                  headers={"Content-Length": "999"},      ← ignored
                  body=ResponseBody("text/plain", b"hi"))

    → Content-Type: text/plain
      Content-Length: 2

=============================================================================
PARTIAL WRITES
=============================================================================

socket.send() may accept fewer bytes than it was given. write_all() keeps
sending the REMAINING slice until everything is out:

    body = b"ABCDEFGHIJ"     send() takes at most 4 bytes per call

    send(b"ABCDEFGHIJ") → 4
    send(b"EFGHIJ")     → 4
    send(b"IJ")         → 2     total 10, done

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union

from .errors import HTTPError
from .status_codes import HTTPStatus, HTTP_VERSION


logger = logging.getLogger(__name__)


DEFAULT_SERVER_NAME = "PY-SIMPLE-HTTP-SERVER"

# Content-Type declared on the plain text bodies of 404/405 responses
ERROR_BODY_TYPE = "Text"

# Headers computed from the body; callers can never override these
FRAMING_HEADERS = ("Content-Type", "Content-Length")


@dataclass(frozen=True)
class ResponseBody:
    """
    A response payload and the MIME type it declares.

    Attributes:
        mime_type: Goes into the Content-Type header.
        content: Raw bytes sent after the blank line.
    """

    mime_type: str
    content: bytes

    @classmethod
    def text(cls, text: str, mime_type: str = ERROR_BODY_TYPE) -> "ResponseBody":
        """Create a body from a string (UTF-8 encoded)."""
        return cls(mime_type=mime_type, content=text.encode("utf-8"))

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class HTTPResponse:
    """
    An HTTP response, ready to be serialized.

    Built once per request (normally through ResponseBuilder or
    make_response) and written exactly once.

    Attributes:
        status: Status code.
        headers: Header name → value, in the order they will be written.
        body: Optional payload.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: Optional[ResponseBody] = None

    def __post_init__(self):
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def status_line(self) -> str:
        """
        The status line, without the CRLF.

        Format: HTTP-VERSION SP STATUS-CODE
        Example: "HTTP/1.1 404"
        """
        return f"{HTTP_VERSION} {int(self.status)}"

    @property
    def content_length(self) -> int:
        """Number of body bytes (0 without a body)."""
        return len(self.body) if self.body is not None else 0

    def head_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the status line and header section.

        =====================================================================
        SERIALIZATION ORDER
        =====================================================================

            1. HTTP/1.1 <code>\\r\\n
            2. <key>: <value>\\r\\n      for each header, insertion order
            3. Server: <server_name>\\r\\n
            4. \\r\\n

        =====================================================================

        A caller-supplied "Server" header is left out so that exactly one
        Server header ever reaches the wire.

        Args:
            server_name: Value for the trailing Server header.

        Returns:
            Everything up to and including the blank line.
        """
        lines = [self.status_line]

        for name, value in self.headers.items():
            if name.lower() == "server":
                continue
            lines.append(f"{name}: {value}")

        lines.append(f"Server: {server_name}")

        # Join gives "...\r\nServer: x"; one more CRLF ends the last header
        # line and one more is the blank line.
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the whole response (head + body) into one bytes object.

        Handy for tests and logging; the connection writes head and body
        separately with write_response().
        """
        body = self.body.content if self.body is not None else b""
        return self.head_bytes(server_name) + body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns self so calls can be chained; build() applies the
    framing-header rule and returns an immutable HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("X-Served-By", "worker-3")
            .body(b"<h1>hi</h1>", "text/html")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: dict[str, str] = {}
        self._body: Optional[ResponseBody] = None

    def status(self, status: Union[HTTPStatus, int]) -> "ResponseBuilder":
        """
        Set the HTTP status code.

        Raises:
            ValueError: If the code is not one this server emits.
        """
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def headers(self, headers: Optional[Mapping[str, str]]) -> "ResponseBuilder":
        """Add multiple headers at once, preserving their order."""
        if headers:
            self._headers.update(headers)
        return self

    def body(
        self,
        content: Union[ResponseBody, bytes, str, None],
        mime_type: str = ERROR_BODY_TYPE,
    ) -> "ResponseBuilder":
        """
        Set the response body.

        Args:
            content: A ResponseBody, raw bytes, or text (UTF-8 encoded).
                     None clears the body.
            mime_type: Declared type when content is bytes or text.
        """
        if content is None or isinstance(content, ResponseBody):
            self._body = content
        elif isinstance(content, str):
            self._body = ResponseBody.text(content, mime_type)
        else:
            self._body = ResponseBody(mime_type=mime_type, content=bytes(content))
        return self

    def build(self) -> HTTPResponse:
        """
        Build the HTTPResponse.

        If there is a body, Content-Type and Content-Length are computed
        from it and replace any same-named header (case-insensitive),
        appended after the caller's headers.
        """
        headers = dict(self._headers)

        if self._body is not None:
            framing = {name.lower() for name in FRAMING_HEADERS}
            headers = {k: v for k, v in headers.items() if k.lower() not in framing}
            headers["Content-Type"] = self._body.mime_type
            headers["Content-Length"] = str(len(self._body.content))

        return HTTPResponse(
            status=self._status,
            headers=MappingProxyType(headers),
            body=self._body,
        )


# =============================================================================
# CONSTRUCTION HELPERS
# =============================================================================


def make_response(
    status: Union[HTTPStatus, int],
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[ResponseBody] = None,
) -> HTTPResponse:
    """
    Build a response from a status, optional headers and optional body.

    Pure function: the caller's mapping is copied, never modified.

    Args:
        status: Status code.
        headers: Extra headers, written in the given order.
        body: Optional payload; determines Content-Type/Content-Length.

    Returns:
        A new HTTPResponse.
    """
    return ResponseBuilder().status(status).headers(headers).body(body).build()


def ok(content: bytes, mime_type: str) -> HTTPResponse:
    """Create a 200 response carrying file content."""
    return make_response(HTTPStatus.OK, body=ResponseBody(mime_type, content))


def bad_request() -> HTTPResponse:
    """Create a 400 response (no body)."""
    return make_response(HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    """Create a 404 response with the plain "404 NOT FOUND" body."""
    return make_response(HTTPStatus.NOT_FOUND, body=ResponseBody.text("404 NOT FOUND"))


def method_not_allowed() -> HTTPResponse:
    """Create a 405 response with the plain "405 Method Not Allowed" body."""
    return make_response(
        HTTPStatus.METHOD_NOT_ALLOWED,
        body=ResponseBody.text("405 Method Not Allowed"),
    )


def internal_error() -> HTTPResponse:
    """Create a 500 response. Never carries diagnostics."""
    return make_response(HTTPStatus.INTERNAL_SERVER_ERROR)


def error_response(error: BaseException) -> HTTPResponse:
    """
    Map an exception to the one response the client receives.

    =========================================================================
    ERROR MAPPING
    =========================================================================

        InvalidMethod / InvalidVersion / RequestTooLarge  →  400, no body
        NotFound                                          →  404, text body
        MethodNotAllowed                                  →  405, text body
        anything else                                     →  500, no body

    =========================================================================

    The status and body come from the error CLASS, so the message of the
    exception (which may contain request data) never reaches the client.

    Args:
        error: The exception caught at the connection boundary.

    Returns:
        The error response.
    """
    if isinstance(error, HTTPError):
        body = None
        if error.body_text is not None:
            body = ResponseBody.text(error.body_text)
        return make_response(error.status, body=body)

    return internal_error()


# =============================================================================
# WIRE OUTPUT
# =============================================================================

SendFunc = Callable[[bytes], int]


def write_all(send: SendFunc, data: bytes) -> int:
    """
    Write every byte of data, tolerating partial writes.

    Args:
        send: Callable that writes some prefix of its argument and returns
              how many bytes it took (e.g. socket.send).
        data: Bytes to write.

    Returns:
        Number of bytes written (always len(data)).

    Raises:
        ConnectionError: If send() reports that it wrote nothing.
    """
    view = memoryview(data)
    written = 0

    while written < len(view):
        sent = send(view[written:])
        if not sent:
            raise ConnectionError(f"Connection stopped accepting data after {written} bytes")
        written += sent

    return written


def write_response(
    send: SendFunc,
    response: HTTPResponse,
    server_name: str = DEFAULT_SERVER_NAME,
) -> int:
    """
    Serialize a response onto a connection.

    The head goes out first, then the raw body bytes; both through
    write_all() so short writes are retried with what is left.

    Args:
        send: The connection's send callable.
        response: Response to write.
        server_name: Value for the Server header.

    Returns:
        Total number of bytes written.
    """
    written = write_all(send, response.head_bytes(server_name))

    if response.body is not None and response.body.content:
        written += write_all(send, response.body.content)

    return written
