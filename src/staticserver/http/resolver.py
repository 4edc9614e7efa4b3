"""
=============================================================================
ROUTE RESOLVER
=============================================================================

Turns a parsed request into a file on disk (plus its MIME type), or into
one of the errors NotFound / MethodNotAllowed.

=============================================================================
RESOLUTION FLOW
=============================================================================

    request.method != GET ? ──yes──► MethodNotAllowed   (no disk access)
            │ no
            ▼
    candidate = root_dir + target        "/srv/www" + "/docs/"
            │
            ▼
    escapes root_dir ? ───────yes──► NotFound
            │ no
            ▼
    stat(candidate) ──FileNotFoundError──► NotFound
            │          other OSError ─────► propagates (→ 500)
            ▼
    directory ? ──yes──► candidate += "/index.html", stat again
            │                 (missing or not a file → NotFound)
            ▼
    ResolvedFile(path, mime_type)

A directory request serves its index.html and stops there. The directory
itself is never read as a file.

=============================================================================
TARGET CLEANUP
=============================================================================

The request target is used as sent, except:

    "/search.html?q=x#top"  →  "/search.html"      query/fragment dropped
    "/my%20notes.txt"       →  "/my notes.txt"     percent-decoded

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from ..core.filesystem import FileStat, FileSystem, LocalFileSystem
from .errors import MethodNotAllowed, NotFound
from .mime_types import get_mime_type
from .request import HTTPRequest
from .status_codes import HTTPMethod


logger = logging.getLogger(__name__)


INDEX_FILE = "index.html"


@dataclass(frozen=True)
class ResolvedFile:
    """
    A request target resolved to a regular file.

    Attributes:
        path: Filesystem path of the file to send.
        mime_type: Content-Type for the file.
    """

    path: str
    mime_type: str


class RouteResolver:
    """
    Maps GET requests onto files under a root directory.

    The resolver is read-only and shares nothing between calls, so one
    instance serves every worker thread.

    Usage:
        resolver = RouteResolver("/srv/www")
        resolved = resolver.resolve(request)
        content = resolver.load(resolved)
    """

    def __init__(
        self,
        root_dir: str,
        filesystem: Optional[FileSystem] = None,
        index_file: str = INDEX_FILE,
    ):
        """
        Args:
            root_dir: Directory to serve. A trailing slash is dropped so
                      that root_dir + "/x" never produces "//x".
            filesystem: Disk access; LocalFileSystem by default.
            index_file: File served for directory requests.
        """
        self.root_dir = root_dir.rstrip("/") or "/"
        self.filesystem = filesystem or LocalFileSystem()
        self.index_file = index_file
        self._root_real = os.path.normpath(os.path.abspath(self.root_dir))

    def resolve(self, request: HTTPRequest) -> ResolvedFile:
        """
        Resolve a request to the file that should be served.

        Args:
            request: The parsed request.

        Returns:
            The file path and MIME type.

        Raises:
            MethodNotAllowed: The method is not GET.
            NotFound: Nothing servable exists at the target.
            OSError: Any other filesystem failure.
        """
        if request.method is not HTTPMethod.GET:
            raise MethodNotAllowed(f"{request.method} {request.path}")

        candidate = self._candidate_path(request.path)
        file_stat = self._stat(candidate)

        # ─────────────────────────────────────────────────────────────────
        # DIRECTORY → INDEX FILE
        # ─────────────────────────────────────────────────────────────────
        if file_stat.is_dir:
            candidate = os.path.join(candidate, self.index_file)
            file_stat = self._stat(candidate)

        if not file_stat.is_file:
            raise NotFound(f"Not a regular file: {candidate}")

        return ResolvedFile(path=candidate, mime_type=get_mime_type(candidate))

    def load(self, resolved: ResolvedFile) -> bytes:
        """
        Read the resolved file.

        The file may vanish between resolve() and load(); that is still
        a NotFound, not a server error.
        """
        try:
            return self.filesystem.read_file(resolved.path)
        except FileNotFoundError:
            raise NotFound(f"File disappeared: {resolved.path}")

    def _candidate_path(self, target: str) -> str:
        """Build root_dir + cleaned target, refusing paths outside the root."""
        path = unquote(target.split("?", 1)[0].split("#", 1)[0])
        candidate = self.root_dir + path

        real = os.path.normpath(os.path.abspath(candidate))
        if real != self._root_real and not real.startswith(self._root_real.rstrip("/") + "/"):
            logger.warning(f"Path traversal attempt: {target!r}")
            raise NotFound(f"Outside root: {target}")

        return candidate

    def _stat(self, path: str) -> FileStat:
        try:
            return self.filesystem.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            # "/page.html/x": a path component is a file, not a directory
            raise NotFound(f"No such path: {path}")
        except ValueError:
            # e.g. "%00" decoded into an embedded null byte
            raise NotFound(f"Unusable path: {path!r}")
