"""
=============================================================================
HTTP STATUS CODES AND METHODS
=============================================================================

The closed set of status codes this server can emit, plus the request
methods it recognizes on the request line.

=============================================================================
STATUS CODES WE EMIT
=============================================================================

    ┌──────┬──────────────────────────┬────────────────────────────────────┐
    │ Code │ Name                     │ When                               │
    ├──────┼──────────────────────────┼────────────────────────────────────┤
    │ 200  │ OK                       │ File found and sent                │
    │ 400  │ Bad Request              │ Broken request line / version      │
    │ 404  │ Not Found                │ Nothing on disk at that path       │
    │ 405  │ Method Not Allowed       │ Anything other than GET            │
    │ 500  │ Internal Server Error    │ Everything we did not anticipate   │
    └──────┴──────────────────────────┴────────────────────────────────────┘

The status line on the wire carries only the number:

    HTTP/1.1 404\r\n

The reason phrase is kept here for log output only.

=============================================================================
"""

from enum import Enum, IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes emitted by the server.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200                        # File served
    BAD_REQUEST = 400               # Malformed request line or version
    NOT_FOUND = 404                 # Path does not exist under the root
    METHOD_NOT_ALLOWED = 405        # Only GET is served
    INTERNAL_SERVER_ERROR = 500     # Catch-all

    @property
    def phrase(self) -> str:
        """Human readable reason phrase (used in logs, never on the wire)."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx status code."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """Check if this is a 4xx status code."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """Check if this is a 5xx status code."""
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


class HTTPMethod(str, Enum):
    """
    Request methods recognized on the request line.

    Matching is case-sensitive: "get" is not a method, "GET" is.
    All seven parse successfully; only GET gets past the resolver.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"

    def __str__(self) -> str:
        return self.value


# The only protocol version accepted on the request line and the one
# written on every status line.
HTTP_VERSION = "HTTP/1.1"
