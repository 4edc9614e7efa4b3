"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between "bytes arrived" and "bytes to send", with no sockets
involved:

    raw bytes ──► RequestParser ──► HTTPRequest
                                        │
                                        ▼
                                  RouteResolver ──► ResolvedFile ──► ok()
                                        │
                  HTTPError ◄───────────┘
                      │
                      ▼
               error_response() ──► HTTPResponse ──► write_response()

    status_codes.py   HTTPStatus (200/400/404/405/500), HTTPMethod
    errors.py         BadRequest, NotFound, MethodNotAllowed, ...
    mime_types.py     extension → Content-Type
    request.py        request parsing
    resolver.py       request → file under the root directory
    response.py       building, error mapping, serialization

=============================================================================
HTTP MESSAGE FORMAT
=============================================================================

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /path HTTP/1.1\\r\\n            HTTP/1.1 200\\r\\n
    Header: Value\\r\\n                 Content-Type: text/html\\r\\n
    \\r\\n                              Content-Length: 5\\r\\n
                                      Server: PY-SIMPLE-HTTP-SERVER\\r\\n
                                      \\r\\n
                                      hello

=============================================================================
"""

from .status_codes import HTTPStatus, HTTPMethod, HTTP_VERSION
from .errors import (
    HTTPError,
    BadRequest,
    InvalidMethod,
    InvalidVersion,
    RequestTooLarge,
    NotFound,
    MethodNotAllowed,
    InternalError,
)
from .request import HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBody,
    ResponseBuilder,
    make_response,
    ok,
    bad_request,
    not_found,
    method_not_allowed,
    internal_error,
    error_response,
    write_all,
    write_response,
)
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type
from .resolver import INDEX_FILE, ResolvedFile, RouteResolver

__all__ = [
    # Status codes and methods
    "HTTPStatus",
    "HTTPMethod",
    "HTTP_VERSION",

    # Errors
    "HTTPError",
    "BadRequest",
    "InvalidMethod",
    "InvalidVersion",
    "RequestTooLarge",
    "NotFound",
    "MethodNotAllowed",
    "InternalError",

    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",

    # Responses
    "HTTPResponse",
    "ResponseBody",
    "ResponseBuilder",
    "make_response",
    "ok",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",
    "error_response",
    "write_all",
    "write_response",

    # MIME types
    "MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "get_mime_type",

    # Resolution
    "INDEX_FILE",
    "ResolvedFile",
    "RouteResolver",
]
