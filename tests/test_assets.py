"""Tests for wagtail_preload.assets module."""

import pytest

from wagtail_preload.assets import Asset, RequestType, is_absolute_url


class TestAsset:
    def test_type_defaults_to_empty(self):
        assert Asset("/a").type == ""

    def test_to_dict(self):
        assert Asset("/a.css", RequestType.STYLE).to_dict() == {
            "url": "/a.css",
            "type": "style",
        }

    @pytest.mark.parametrize(
        "data,expected",
        [
            pytest.param({"url": "/a", "type": "font"}, Asset("/a", "font"), id="typed"),
            pytest.param({"url": "/a"}, Asset("/a", ""), id="missing-type"),
            pytest.param({"url": "/a", "type": None}, Asset("/a", ""), id="null-type"),
        ],
    )
    def test_from_dict(self, data, expected):
        assert Asset.from_dict(data) == expected

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param({"url": None}, id="null-url"),
            pytest.param({"url": 5}, id="numeric-url"),
            pytest.param({"url": "/a", "type": ["script"]}, id="list-type"),
        ],
    )
    def test_from_dict_rejects_non_string_fields(self, data):
        """Non-string url or type values raise TypeError.

        Purpose: Verify malformed manifest entries are rejected at decode
            time instead of reaching header formatting.
        Category: Error case
        Target: Asset.from_dict(data)
        Technique: Error guessing
        Test data: null and numeric url, list type
        """
        with pytest.raises(TypeError):
            Asset.from_dict(data)

    def test_immutable(self):
        asset = Asset("/a")

        with pytest.raises(AttributeError):
            asset.url = "/b"


class TestRequestType:
    def test_fetch_destinations(self):
        """RequestType covers the fetch destinations usable with as=."""
        assert set(RequestType.values) == {
            "audio",
            "font",
            "image",
            "script",
            "style",
            "track",
            "video",
        }


class TestIsAbsoluteUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://a/b", True),
            ("https://a/b", True),
            ("http:relative", True),
            ("//cdn/b", False),
            ("/b", False),
            ("ftp://a/b", False),
        ],
    )
    def test_is_absolute_url(self, url, expected):
        assert is_absolute_url(url) is expected
