"""
Unit tests for resolving requests to files.
"""

import os
from pathlib import Path

import pytest

from staticserver.core.filesystem import FileStat, FileSystem, LocalFileSystem
from staticserver.http.errors import MethodNotAllowed, NotFound
from staticserver.http.request import HTTPRequest
from staticserver.http.resolver import ResolvedFile, RouteResolver
from staticserver.http.status_codes import HTTPMethod


def get(path: str) -> HTTPRequest:
    return HTTPRequest(method=HTTPMethod.GET, path=path)


class FakeFileSystem(FileSystem):
    """In-memory disk: directory paths in `dirs`, file contents in `files`."""

    def __init__(self, files=None, dirs=None, broken=None):
        self.files = dict(files or {})
        self.dirs = set(dirs or ())
        self.broken = set(broken or ())
        self.stat_calls = []

    def stat(self, path: str) -> FileStat:
        self.stat_calls.append(path)
        if path in self.broken:
            raise PermissionError(path)
        if path in self.dirs:
            return FileStat(is_dir=True)
        if path in self.files:
            return FileStat(is_file=True)
        raise FileNotFoundError(path)

    def read_file(self, path: str) -> bytes:
        if path in self.broken:
            raise PermissionError(path)
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path)


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem(
        files={
            "/srv/www/index.html": b"<h1>home</h1>",
            "/srv/www/a/b.css": b"body {}",
            "/srv/www/logo.PNG": b"\x89PNG",
            "/srv/www/readme": b"plain",
            "/srv/www/secret.txt": b"locked",
        },
        dirs={"/srv/www", "/srv/www/", "/srv/www/a", "/srv/www/empty", "/srv/www/sub"},
    )


class TestRouteResolverWithFakeDisk:
    """Resolution rules, driven through a fake filesystem."""

    def test_resolves_file(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        resolved = resolver.resolve(get("/a/b.css"))

        assert resolved == ResolvedFile(path="/srv/www/a/b.css", mime_type="text/css")

    def test_root_serves_index(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        resolved = resolver.resolve(get("/"))

        assert resolved.path == "/srv/www/index.html"
        assert resolved.mime_type == "text/html"

    def test_trailing_slash_on_root_dropped(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www/", filesystem=fake_fs)

        assert resolver.resolve(get("/a/b.css")).path == "/srv/www/a/b.css"

    def test_directory_without_index_is_not_found(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        with pytest.raises(NotFound):
            resolver.resolve(get("/empty"))

    def test_missing_file_is_not_found(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        with pytest.raises(NotFound):
            resolver.resolve(get("/nope.html"))

    def test_extension_case_insensitive(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        assert resolver.resolve(get("/logo.PNG")).mime_type == "image/png"

    def test_no_extension_is_octet_stream(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        assert resolver.resolve(get("/readme")).mime_type == "application/octet-stream"

    @pytest.mark.parametrize("method", [m for m in HTTPMethod if m is not HTTPMethod.GET])
    def test_non_get_rejected_without_disk_access(self, fake_fs: FakeFileSystem, method: HTTPMethod):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        with pytest.raises(MethodNotAllowed):
            resolver.resolve(HTTPRequest(method=method, path="/index.html"))

        assert fake_fs.stat_calls == []

    def test_non_get_rejected_even_for_missing_paths(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        with pytest.raises(MethodNotAllowed):
            resolver.resolve(HTTPRequest(method=HTTPMethod.POST, path="/nope"))

    def test_other_os_errors_propagate(self, fake_fs: FakeFileSystem):
        fake_fs.broken.add("/srv/www/secret.txt")
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        with pytest.raises(PermissionError):
            resolver.resolve(get("/secret.txt"))

    def test_query_and_fragment_ignored(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        assert resolver.resolve(get("/a/b.css?v=3#top")).path == "/srv/www/a/b.css"

    def test_percent_decoding(self, fake_fs: FakeFileSystem):
        fake_fs.files["/srv/www/my notes.txt"] = b"x"
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        assert resolver.resolve(get("/my%20notes.txt")).path == "/srv/www/my notes.txt"

    @pytest.mark.parametrize("target", [
        "/../etc/passwd",
        "/a/../../etc/passwd",
        "/%2e%2e/etc/passwd",
    ])
    def test_traversal_is_not_found(self, fake_fs: FakeFileSystem, target: str):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        with pytest.raises(NotFound):
            resolver.resolve(get(target))

        assert fake_fs.stat_calls == []

    def test_load_reads_bytes(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)

        assert resolver.load(resolver.resolve(get("/a/b.css"))) == b"body {}"

    def test_load_vanished_file_is_not_found(self, fake_fs: FakeFileSystem):
        resolver = RouteResolver("/srv/www", filesystem=fake_fs)
        resolved = resolver.resolve(get("/a/b.css"))
        del fake_fs.files["/srv/www/a/b.css"]

        with pytest.raises(NotFound):
            resolver.load(resolved)


class TestRouteResolverOnDisk:
    """The same rules against a real directory."""

    def test_serves_file(self, web_root: Path):
        resolver = RouteResolver(str(web_root))

        resolved = resolver.resolve(get("/style.css"))

        assert resolved.mime_type == "text/css"
        assert resolver.load(resolved) == (web_root / "style.css").read_bytes()

    def test_directory_serves_index(self, web_root: Path):
        resolver = RouteResolver(str(web_root))

        resolved = resolver.resolve(get("/docs"))

        assert resolved.path == os.path.join(str(web_root) + "/docs", "index.html")
        assert resolver.load(resolved) == b"<h1>Docs</h1>"

    def test_directory_with_trailing_slash(self, web_root: Path):
        resolver = RouteResolver(str(web_root))

        assert resolver.load(resolver.resolve(get("/docs/"))) == b"<h1>Docs</h1>"

    def test_empty_directory_is_not_found(self, web_root: Path):
        resolver = RouteResolver(str(web_root))

        with pytest.raises(NotFound):
            resolver.resolve(get("/empty"))

    def test_file_used_as_directory_is_not_found(self, web_root: Path):
        resolver = RouteResolver(str(web_root))

        with pytest.raises(NotFound):
            resolver.resolve(get("/style.css/extra"))

    def test_null_byte_is_not_found(self, web_root: Path):
        resolver = RouteResolver(str(web_root))

        with pytest.raises(NotFound):
            resolver.resolve(get("/index.html%00.txt"))


class TestLocalFileSystem:
    """Tests for the disk-backed filesystem."""

    def test_stat_file(self, web_root: Path):
        result = LocalFileSystem().stat(str(web_root / "style.css"))

        assert result == FileStat(is_file=True)

    def test_stat_directory(self, web_root: Path):
        result = LocalFileSystem().stat(str(web_root / "docs"))

        assert result == FileStat(is_dir=True)

    def test_stat_missing(self, web_root: Path):
        with pytest.raises(FileNotFoundError):
            LocalFileSystem().stat(str(web_root / "missing"))

    def test_read_file(self, web_root: Path):
        assert LocalFileSystem().read_file(str(web_root / "data.bin")) == bytes(range(256))

    def test_read_directory_is_os_error(self, web_root: Path):
        with pytest.raises(OSError):
            LocalFileSystem().read_file(str(web_root / "docs"))
