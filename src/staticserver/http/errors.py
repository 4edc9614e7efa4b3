"""
=============================================================================
HTTP ERROR TAXONOMY
=============================================================================

Every failure the parser or resolver can signal is one of these classes.
They are raised deep in the pipeline and caught exactly once, at the
connection boundary, where error_response() turns them into the single
response the client gets.

    HTTPError
     ├── BadRequest            400, no body
     │    ├── InvalidMethod
     │    ├── InvalidVersion
     │    └── RequestTooLarge
     ├── NotFound              404, "404 NOT FOUND"
     ├── MethodNotAllowed      405, "405 Method Not Allowed"
     └── InternalError         500, no body

Status and body are CLASS attributes: an instance only carries a message
for the log, never anything from the request itself.

=============================================================================
"""

from typing import Optional

from .status_codes import HTTPStatus


class HTTPError(Exception):
    """
    Base class for errors that map directly to an HTTP response.

    Attributes:
        status: Status code sent to the client.
        body_text: Plain text body sent to the client, or None for no body.
    """

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    body_text: Optional[str] = None

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)


class BadRequest(HTTPError):
    """The request could not be understood."""

    status = HTTPStatus.BAD_REQUEST


class InvalidMethod(BadRequest):
    """Request line method token is missing or not a known method."""


class InvalidVersion(BadRequest):
    """Request line version token is missing or is not HTTP/1.1."""


class RequestTooLarge(BadRequest):
    """No header terminator within the configured request size limit."""


class NotFound(HTTPError):
    """The resolved path does not exist under the server root."""

    status = HTTPStatus.NOT_FOUND
    body_text = "404 NOT FOUND"


class MethodNotAllowed(HTTPError):
    """The method parsed fine but only GET is served."""

    status = HTTPStatus.METHOD_NOT_ALLOWED
    body_text = "405 Method Not Allowed"


class InternalError(HTTPError):
    """Anything the server cannot classify more precisely."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR
