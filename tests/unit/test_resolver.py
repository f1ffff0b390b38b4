"""
Unit tests for request-target → filesystem path resolution.
"""

import os

import pytest

from staticserver.files.resolver import PathResolver


HOST = "localhost:3000"


@pytest.fixture
def resolver(site_root) -> PathResolver:
    return PathResolver(os.fspath(site_root))


class TestResolve:
    """Tests for PathResolver.resolve."""

    def test_plain_path(self, resolver, site_root):
        assert resolver.resolve("/a.txt", HOST) == os.path.join(os.fspath(site_root), "a.txt")

    def test_root(self, resolver):
        assert resolver.resolve("/", HOST) == resolver.root

    def test_query_is_ignored(self, resolver):
        assert resolver.resolve("/a.txt?v=3#frag", HOST).endswith(os.sep + "a.txt")

    def test_percent_decoding(self, resolver):
        assert resolver.resolve("/my%20file.txt", HOST).endswith(os.sep + "my file.txt")

    def test_utf8_percent_decoding(self, resolver):
        assert resolver.resolve("/caf%C3%A9.txt", HOST).endswith(os.sep + "café.txt")

    def test_dot_segments_inside_root_are_normalized(self, resolver):
        assert resolver.resolve("/docs/../a.txt", HOST) == resolver.resolve("/a.txt", HOST)
        assert resolver.resolve("/./docs//b.txt", HOST).endswith(os.path.join("docs", "b.txt"))

    @pytest.mark.parametrize("target", [
        "/../secret.txt",
        "/../../../../etc/passwd",
        "/docs/../../secret.txt",
        "/%2e%2e/secret.txt",
        "/%2E%2E/%2E%2E/etc/passwd",
        "/docs/%2e%2e%2f%2e%2e%2fsecret.txt",
        "/..%2fsecret.txt",
    ])
    def test_traversal_is_rejected(self, resolver, target):
        assert resolver.resolve(target, HOST) is None

    def test_sibling_with_common_prefix_is_rejected(self, resolver, site_root):
        sibling = os.path.basename(os.fspath(site_root)) + "-old"
        assert resolver.resolve(f"/../{sibling}/x.txt", HOST) is None

    def test_missing_host(self, resolver):
        assert resolver.resolve("/a.txt", "") is None

    @pytest.mark.parametrize("host", ["exa mple/evil", "host:notaport", ":3000", "a/b"])
    def test_malformed_host(self, resolver, host):
        assert resolver.resolve("/a.txt", host) is None

    def test_host_without_port(self, resolver):
        assert resolver.resolve("/a.txt", "example.com") is not None

    def test_invalid_utf8_escape(self, resolver):
        assert resolver.resolve("/%ff%fe.txt", HOST) is None

    def test_nul_byte(self, resolver):
        assert resolver.resolve("/a.txt%00.png", HOST) is None

    def test_empty_target(self, resolver):
        assert resolver.resolve("", HOST) is None


class TestContains:
    """Tests for PathResolver.contains."""

    def test_root_itself(self, resolver):
        assert resolver.contains(resolver.root)

    def test_descendant(self, resolver):
        assert resolver.contains(os.path.join(resolver.root, "x", "y"))

    def test_prefix_sibling(self, resolver):
        assert not resolver.contains(resolver.root + "-old")

    def test_filesystem_root_contains_everything(self):
        root = os.path.abspath(os.sep)
        assert PathResolver(root).contains(os.path.join(root, "etc"))

    def test_relative_root_is_made_absolute(self, site_root, monkeypatch):
        monkeypatch.chdir(site_root.parent)
        root = PathResolver("site").root
        assert os.path.isabs(root)
        assert os.path.realpath(root) == os.path.realpath(site_root)
