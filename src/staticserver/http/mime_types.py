"""
=============================================================================
MIME TYPES
=============================================================================

Maps file extensions to MIME types for the Content-Type header.

    style.css  ──►  text/css
    logo.PNG   ──►  image/png        (extension lookup is case-insensitive)
    archive.7z ──►  application/octet-stream   (not in table: fallback)
    Makefile   ──►  application/octet-stream   (no extension: fallback)

The browser uses Content-Type, not the URL, to decide what to do with the
bytes. Serving CSS as application/octet-stream means the stylesheet is
silently ignored.

=============================================================================
"""

from types import MappingProxyType


# =============================================================================
# EXTENSION → MIME TYPE
# =============================================================================
# Keys are lowercase and carry no leading dot.

MIME_TYPES = MappingProxyType({
    # Text
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "txt": "text/plain",

    # Scripts and data
    "js": "application/javascript",
    "json": "application/json",
    "xml": "application/xml",

    # Images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
})

# "I don't know what this is, treat it as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_extension(path: str) -> str:
    """
    Return the lowercase text after the last "." in path.

    Returns an empty string when the path contains no dot at all.

    Examples:
        >>> get_extension("/srv/www/index.HTML")
        'html'
        >>> get_extension("/srv/www/README")
        ''
    """
    _, dot, extension = path.rpartition(".")
    if not dot:
        return ""
    return extension.lower()


def get_mime_type(path: str, default: str = DEFAULT_MIME_TYPE) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name.
        default: Type returned when the extension is missing or unmapped.

    Returns:
        The MIME type string.

    Examples:
        >>> get_mime_type("/srv/www/app.js")
        'application/javascript'
        >>> get_mime_type("/srv/www/data.bin")
        'application/octet-stream'
    """
    return MIME_TYPES.get(get_extension(path), default)
