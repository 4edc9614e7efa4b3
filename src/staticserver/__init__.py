"""
=============================================================================
STATICSERVER - A STATIC FILE HTTP/1.1 SERVER
=============================================================================

Serves the files under one directory over HTTP/1.1, built directly on
sockets and the standard library.

=============================================================================
QUICK START
=============================================================================

    from staticserver import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(root_dir="./www", port=8000))
    server.run()

Or from the command line:

    python -m staticserver ./www

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __init__.py        ← You are here
    ├── __main__.py        ← CLI entry point
    ├── config.py          ← ServerConfig
    ├── server.py          ← HTTPServer (orchestration)
    ├── access_log.py      ← One record per answered connection
    ├── core/              ← Sockets, connections, worker pool, disk access
    └── http/              ← Parsing, resolving, building, serializing

=============================================================================
WHAT IT DOES
=============================================================================

    GET /           → <root>/index.html
    GET /a/b.css    → <root>/a/b.css (text/css)
    GET /missing    → 404 "404 NOT FOUND"
    POST /anything  → 405 "405 Method Not Allowed"
    garbage         → 400

One request per connection: the server answers and closes.

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
