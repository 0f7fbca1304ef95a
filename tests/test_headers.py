"""Tests for wagtail_preload.headers module."""

import pytest
from django.http import HttpResponse
from django.test import RequestFactory

from wagtail_preload.assets import Asset, RequestType
from wagtail_preload.headers import (
    add_preload_headers,
    associated_content_value,
    header_values,
    link_value,
    request_scheme,
    resolve_url,
)


class TestRequestScheme:
    @pytest.mark.parametrize(
        "extra,secure,expected",
        [
            pytest.param(
                {"HTTP_X_FORWARDED_PROTO": "https"}, False, "https", id="forwarded-https"
            ),
            pytest.param(
                {"HTTP_X_FORWARDED_PROTO": "http"},
                True,
                "http",
                id="forwarded-wins-over-tls",
            ),
            pytest.param({}, True, "https", id="tls"),
            pytest.param({}, False, "http", id="plain"),
            pytest.param(
                {"HTTP_X_FORWARDED_PROTO": ""}, False, "http", id="empty-forwarded"
            ),
        ],
    )
    def test_scheme_resolution(self, extra, secure, expected):
        """X-Forwarded-Proto, then TLS, then http.

        Purpose: Verify the scheme precedence used for relative asset URLs.
        Category: Normal case
        Target: request_scheme(request)
        Technique: Decision table
        Test data: Combinations of forwarded header and TLS
        """
        request = RequestFactory().get("/", secure=secure, **extra)

        assert request_scheme(request) == expected


class TestResolveUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            pytest.param("/app.js", "http://h/app.js", id="root-relative"),
            pytest.param("app.js", "http://h/app.js", id="relative"),
            pytest.param(
                "//css//site.css", "http://h/css/site.css", id="collapse-separators"
            ),
            pytest.param("/a/../b/./c.js", "http://h/b/c.js", id="dot-segments"),
            pytest.param("http://cdn/x.js", "http://cdn/x.js", id="absolute-http"),
            pytest.param("https://cdn/x.js", "https://cdn/x.js", id="absolute-https"),
        ],
    )
    def test_resolve(self, url, expected):
        """Relative URLs are joined to scheme://host; absolute URLs pass through.

        Purpose: Verify URL resolution and path cleaning.
        Category: Normal case
        Target: resolve_url(url, scheme, host)
        Technique: Equivalence partitioning
        Test data: Relative, messy and absolute URLs
        """
        assert resolve_url(url, "http", "h") == expected

    def test_host_with_port(self):
        assert resolve_url("/a.js", "https", "example.com:8443") == (
            "https://example.com:8443/a.js"
        )


class TestHeaderValues:
    def test_link_value_with_type(self):
        assert link_value("http://h/a.css", "style") == (
            "<http://h/a.css>; rel=preload; as=style"
        )

    def test_link_value_without_type(self):
        assert link_value("http://h/a.html") == "<http://h/a.html>; rel=preload"

    def test_associated_content_is_quoted(self):
        assert associated_content_value('http://h/a"b.js') == '"http://h/a\\"b.js"'


class TestAddPreloadHeaders:
    def test_one_entry_per_asset_in_order(self):
        """Each asset adds one Link and one X-Associated-Content entry.

        Purpose: Verify header formatting and ordering.
        Category: Normal case
        Target: add_preload_headers(response, scheme, host, *assets)
        Technique: Equivalence partitioning
        Test data: A typed relative asset and an untyped absolute one
        """
        response = HttpResponse("body")

        add_preload_headers(
            response,
            "https",
            "example.com",
            Asset("/site.css", RequestType.STYLE),
            Asset("http://cdn/c.html"),
        )

        assert header_values(response, "Link") == [
            "<https://example.com/site.css>; rel=preload; as=style",
            "<http://cdn/c.html>; rel=preload",
        ]
        assert header_values(response, "X-Associated-Content") == [
            '"https://example.com/site.css"',
            '"http://cdn/c.html"',
        ]
        assert response.content == b"body"

    def test_appends_to_existing_link_header(self):
        """A Link value set by the view is preserved and comes first."""
        response = HttpResponse()
        response["Link"] = "</other>; rel=prefetch"

        add_preload_headers(response, "http", "h", Asset("/a.js", RequestType.SCRIPT))

        assert header_values(response, "Link") == [
            "</other>; rel=prefetch",
            "<http://h/a.js>; rel=preload; as=script",
        ]

    def test_no_assets_adds_nothing(self):
        response = HttpResponse()

        add_preload_headers(response, "http", "h")

        assert not response.has_header("Link")
        assert not response.has_header("X-Associated-Content")
        assert header_values(response, "Link") == []

    def test_url_containing_separator_stays_whole(self):
        """A ", " inside a URL does not split its entry.

        Purpose: Verify folded headers split only between entries.
        Category: Edge case
        Target: header_values(response, name)
        Technique: Boundary value analysis
        Test data: Asset URL "/a, b.js" followed by a second asset
        """
        response = HttpResponse()

        add_preload_headers(response, "http", "h", Asset("/a, b.js"), Asset("/c.js"))

        assert header_values(response, "Link") == [
            "<http://h/a, b.js>; rel=preload",
            "<http://h/c.js>; rel=preload",
        ]
        assert header_values(response, "X-Associated-Content") == [
            '"http://h/a, b.js"',
            '"http://h/c.js"',
        ]
