"""Pytest fixtures for wagtail-preload tests."""

from unittest import mock

import pytest

from wagtail_preload.assets import Asset, RequestType
from wagtail_preload.cache import manifest_cache
from wagtail_preload.manifest import Manifest


@pytest.fixture
def sample_page_html():
    """A full page referencing a stylesheet, a script and two images."""
    return (
        "<!DOCTYPE html>"
        "<html><head>"
        '<link rel="stylesheet" href="/css/site.css">'
        '<link rel="icon" href="/favicon.ico">'
        '<script src="/js/app.js"></script>'
        "</head><body>"
        '<div class="hero"><img src="/img/hero.png" alt=""></div>'
        '<p><img src="https://cdn.example.com/logo.svg"></p>'
        "</body></html>"
    )


@pytest.fixture
def preload_manifest():
    """Manifest covering absolute, relative, empty and missing entries."""
    return Manifest(
        {
            "/abs": [
                Asset("http://example.org/app.css", RequestType.STYLE),
                Asset("http://example.org/app.js"),
            ],
            "/rel": [Asset("/app.js")],
            "/empty": [],
        }
    )


@pytest.fixture
def site_dir(tmp_path):
    """A static site tree with HTML and non-HTML files."""
    (tmp_path / "blog").mkdir()
    (tmp_path / "index.html").write_text(
        '<link rel="stylesheet" href="/site.css"><img src="/home.png">'
    )
    (tmp_path / "about.html").write_text('<script src="/about.js"></script>')
    (tmp_path / "blog" / "index.html").write_text('<img src="/blog.png">')
    (tmp_path / "blog" / "post.htm").write_text('<img src="/post.png">')
    (tmp_path / "site.css").write_text("body {}")
    return tmp_path


@pytest.fixture(autouse=True)
def clear_manifest_cache():
    """Isolate tests from manifests cached by earlier tests."""
    manifest_cache.clear()
    yield
    manifest_cache.clear()


@pytest.fixture
def mock_response():
    """Mock httpx response for the extraction view."""
    response = mock.Mock()
    response.status_code = 200
    response.text = '<script src="/remote.js"></script>'
    return response
