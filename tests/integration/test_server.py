"""
End-to-end tests against a live server on a background thread.
"""

import gzip
import http.client
import re
import socket

import pytest


def get(test_server, target, headers=None, method="GET"):
    """Send one request on a fresh connection; return (response, body)."""
    conn = http.client.HTTPConnection("127.0.0.1", test_server.port, timeout=5)
    try:
        conn.request(method, target, headers=headers or {})
        response = conn.getresponse()
        body = response.read()
        return response, body
    finally:
        conn.close()


def raw_exchange(test_server, data: bytes) -> bytes:
    """Send raw bytes and read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestServing:

    def test_full_file(self, test_server, site_files):
        response, body = get(test_server, "/a.txt")

        assert response.status == 200
        assert response.getheader("Content-Length") == "5000"
        assert response.getheader("Accept-Ranges") == "bytes"
        assert response.getheader("Server") == "StaticServer/1.0"
        assert response.getheader("Date")
        assert body == site_files["/a.txt"]

    def test_query_string_ignored(self, test_server, site_files):
        _, body = get(test_server, "/app.js?v=123")
        assert body == site_files["/app.js"]

    def test_missing(self, test_server):
        response, body = get(test_server, "/nope.txt")

        assert response.status == 404
        assert body == b"404 Not Found"

    @pytest.mark.parametrize("target", [
        "/../secret.txt",
        "/%2e%2e/secret.txt",
        "/docs/..%2F..%2Fsecret.txt",
    ])
    def test_traversal(self, test_server, target):
        response, body = get(test_server, target)

        assert response.status == 403
        assert b"top secret" not in body

    def test_head_has_headers_but_no_body(self, test_server):
        response, body = get(test_server, "/a.txt", method="HEAD")

        assert response.status == 200
        assert response.getheader("Content-Length") == "5000"
        assert body == b""


class TestDirectories:

    def test_index_fallback(self, test_server, site_files):
        response, body = get(test_server, "/")

        assert response.status == 200
        assert response.getheader("Cache-Control") == "no-cache, must-revalidate"
        assert body == site_files["/index.html"]

    def test_listing(self, test_server):
        response, body = get(test_server, "/docs/")

        assert response.status == 200
        assert response.getheader("Content-Type") == "text/html; charset=utf-8"
        hrefs = re.findall(rb'<a href="([^"]*)">', body)
        assert hrefs == [b"/docs/b.txt", b"/docs/c.css", b"/docs/nested"]


class TestCaching:

    def test_etag_round_trip(self, test_server):
        first, _ = get(test_server, "/a.txt")
        etag = first.getheader("ETag")

        second, body = get(test_server, "/a.txt", {"If-None-Match": etag})

        assert second.status == 304
        assert second.getheader("ETag") == etag
        assert second.getheader("Content-Length") is None
        assert body == b""

    def test_if_modified_since(self, test_server):
        first, _ = get(test_server, "/image.png")
        response, _ = get(test_server, "/image.png", {"If-Modified-Since": first.getheader("Last-Modified")})

        assert response.status == 304

    def test_asset_cache_control(self, test_server):
        response, _ = get(test_server, "/app.js")
        assert response.getheader("Cache-Control") == "public, max-age=31536000, immutable"


class TestRanges:

    def test_first_hundred(self, test_server, site_files):
        response, body = get(test_server, "/a.txt", {"Range": "bytes=0-99"})

        assert response.status == 206
        assert response.getheader("Content-Range") == "bytes 0-99/5000"
        assert response.getheader("Content-Length") == "100"
        assert body == site_files["/a.txt"][:100]

    def test_suffix(self, test_server, site_files):
        response, body = get(test_server, "/a.txt", {"Range": "bytes=-10"})

        assert response.status == 206
        assert body == site_files["/a.txt"][-10:]

    def test_unsatisfiable(self, test_server):
        response, _ = get(test_server, "/a.txt", {"Range": "bytes=5000-5005"})

        assert response.status == 416
        assert response.getheader("Content-Range") == "bytes */5000"


class TestCompression:

    def test_txt_round_trip(self, test_server, site_files):
        response, body = get(test_server, "/a.txt", {"Accept-Encoding": "gzip"})

        assert response.status == 200
        assert response.getheader("Content-Encoding") == "gzip"
        assert response.getheader("Content-Length") is None
        assert response.getheader("Connection") == "close"
        assert gzip.decompress(body) == site_files["/a.txt"]

    def test_js_round_trip(self, test_server, site_files):
        response, body = get(test_server, "/app.js", {"Accept-Encoding": "gzip, deflate"})

        assert response.getheader("Content-Encoding") == "gzip"
        assert gzip.decompress(body) == site_files["/app.js"]

    def test_png_not_compressed(self, test_server, site_files):
        response, body = get(test_server, "/image.png", {"Accept-Encoding": "gzip"})

        assert response.getheader("Content-Encoding") is None
        assert body == site_files["/image.png"]

    def test_ranged_gzip(self, test_server, site_files):
        response, body = get(test_server, "/app.js", {"Accept-Encoding": "gzip", "Range": "bytes=0-49"})

        assert response.status == 206
        assert gzip.decompress(body) == site_files["/app.js"][:50]


class TestConnection:

    def test_keep_alive_reuses_connection(self, test_server, site_files):
        conn = http.client.HTTPConnection("127.0.0.1", test_server.port, timeout=5)
        try:
            for target in ("/a.txt", "/image.png", "/nope.txt"):
                conn.request("GET", target)
                response = conn.getresponse()
                response.read()
                assert response.getheader("Connection") == "keep-alive"
        finally:
            conn.close()

    def test_malformed_request_line(self, test_server):
        reply = raw_exchange(test_server, b"GARBAGE\r\n\r\n")
        assert reply.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    def test_missing_host_is_forbidden(self, test_server):
        reply = raw_exchange(test_server, b"GET /a.txt HTTP/1.0\r\n\r\n")
        assert reply.startswith(b"HTTP/1.1 403 Forbidden\r\n")
