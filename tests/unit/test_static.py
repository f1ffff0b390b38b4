"""
Unit tests for the StaticFileHandler pipeline (no sockets involved).
"""

import gzip
import os

import pytest

from staticserver.handlers.static import StaticFileHandler


def body_of(response) -> bytes:
    try:
        return b"".join(response.iter_body())
    finally:
        response.close()


@pytest.fixture
def handler(site_root) -> StaticFileHandler:
    return StaticFileHandler(os.fspath(site_root))


class TestResolution:
    """403 / 404 decisions."""

    @pytest.mark.parametrize("target", ["/../secret.txt", "/%2e%2e/secret.txt", "/docs/%2E%2E/%2E%2E/secret.txt"])
    def test_traversal_is_forbidden(self, handler, make_request, target):
        response = handler.handle(make_request(target))

        assert response.status == 403
        assert response.body == b"403 Forbidden"
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_missing_host_is_forbidden(self, handler, make_request):
        assert handler.handle(make_request("/a.txt", host=None)).status == 403

    def test_missing_file(self, handler, make_request):
        response = handler.handle(make_request("/nope.txt"))

        assert response.status == 404
        assert response.body == b"404 Not Found"

    def test_path_below_a_file(self, handler, make_request):
        assert handler.handle(make_request("/a.txt/child")).status == 404

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs mkfifo")
    def test_special_file_is_forbidden(self, handler, make_request, site_root):
        os.mkfifo(site_root / "pipe")
        assert handler.handle(make_request("/pipe")).status == 403


class TestDirectories:
    """Index fallback and listings."""

    def test_root_serves_index(self, handler, make_request, site_files):
        response = handler.handle(make_request("/"))

        assert response.status == 200
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.headers["Cache-Control"] == "no-cache, must-revalidate"
        assert body_of(response) == site_files["/index.html"]

    def test_subdirectory_index(self, handler, make_request, site_files):
        response = handler.handle(make_request("/app"))
        assert body_of(response) == site_files["/app/index.html"]

    def test_listing_without_index(self, handler, make_request):
        response = handler.handle(make_request("/docs"))

        assert response.status == 200
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert b'<a href="/docs/b.txt">b.txt</a>' in response.body
        assert b'<a href="/docs/nested">nested</a>' in response.body

    def test_custom_index_name(self, site_root, make_request):
        (site_root / "docs" / "home.htm").write_bytes(b"home")
        handler = StaticFileHandler(os.fspath(site_root), index_file="home.htm")

        assert body_of(handler.handle(make_request("/docs/"))) == b"home"

    def test_unlistable_directory_is_forbidden(self, handler, make_request, monkeypatch):
        monkeypatch.setattr(handler.directories, "render_listing", lambda directory, path: None)
        assert handler.handle(make_request("/docs")).status == 403


class TestConditional:
    """304 short-circuit."""

    def test_etag_match(self, handler, make_request):
        etag = handler.handle(make_request("/a.txt")).headers["ETag"]

        response = handler.handle(make_request(
            "/a.txt",
            If_None_Match=etag,
            Range="bytes=0-9",
            Accept_Encoding="gzip",
        ))

        assert response.status == 304
        assert response.headers["ETag"] == etag
        assert "Content-Range" not in response.headers
        assert "Content-Encoding" not in response.headers
        assert body_of(response) == b""

    def test_last_modified_match(self, handler, make_request):
        last_modified = handler.handle(make_request("/app.js")).headers["Last-Modified"]
        response = handler.handle(make_request("/app.js", If_Modified_Since=last_modified))

        assert response.status == 304

    def test_stale_etag(self, handler, make_request):
        assert handler.handle(make_request("/a.txt", If_None_Match='"old"')).status == 200

    def test_index_file_validators(self, handler, make_request):
        etag = handler.handle(make_request("/app/")).headers["ETag"]
        assert handler.handle(make_request("/app/", If_None_Match=etag)).status == 304


class TestRanges:
    """206 / 416."""

    def test_first_hundred_bytes(self, handler, make_request, site_files):
        response = handler.handle(make_request("/a.txt", Range="bytes=0-99"))

        assert response.status == 206
        assert response.headers["Content-Range"] == "bytes 0-99/5000"
        assert response.headers["Content-Length"] == "100"
        assert body_of(response) == site_files["/a.txt"][:100]

    def test_suffix(self, handler, make_request, site_files):
        response = handler.handle(make_request("/a.txt", Range="bytes=-10"))
        assert body_of(response) == site_files["/a.txt"][-10:]

    def test_start_past_end(self, handler, make_request):
        response = handler.handle(make_request("/a.txt", Range="bytes=5000-5005"))

        assert response.status == 416
        assert response.headers["Content-Range"] == "bytes */5000"

    def test_garbage_range(self, handler, make_request):
        assert handler.handle(make_request("/a.txt", Range="bytes=x-y")).status == 416

    def test_range_on_empty_file(self, handler, make_request):
        assert handler.handle(make_request("/empty.txt", Range="bytes=0-")).status == 416


class TestCompression:
    """gzip gating."""

    def test_text_file_is_compressed(self, handler, make_request, site_files):
        response = handler.handle(make_request("/a.txt", Accept_Encoding="gzip"))

        assert response.status == 200
        assert response.headers["Content-Encoding"] == "gzip"
        assert "Content-Length" not in response.headers
        assert gzip.decompress(body_of(response)) == site_files["/a.txt"]

    def test_image_is_never_compressed(self, handler, make_request, site_files):
        response = handler.handle(make_request("/image.png", Accept_Encoding="gzip"))

        assert "Content-Encoding" not in response.headers
        assert response.headers["Content-Length"] == str(len(site_files["/image.png"]))
        body_of(response)

    def test_range_then_gzip(self, handler, make_request, site_files):
        response = handler.handle(make_request("/app.js", Range="bytes=10-19", Accept_Encoding="gzip"))

        assert response.status == 206
        assert response.headers["Content-Encoding"] == "gzip"
        assert gzip.decompress(body_of(response)) == site_files["/app.js"][10:20]


class TestUnexpectedErrors:
    """500 handling."""

    def test_probe_failure_becomes_500(self, handler, make_request, monkeypatch):
        def boom(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr("staticserver.handlers.static.probe", boom)
        response = handler.handle(make_request("/a.txt"))

        assert response.status == 500
        assert response.body == b"500 Internal Server Error"
        assert b"Permission" not in response.body

    def test_error_is_logged(self, handler, make_request, monkeypatch, caplog):
        def boom(path):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr("staticserver.handlers.static.probe", boom)
        handler.handle(make_request("/a.txt"))

        assert "Error serving GET /a.txt" in caplog.text
