"""Build ``Link: <url>; rel=preload`` response headers."""

from __future__ import annotations

import posixpath
import re

from django.http import HttpRequest, HttpResponseBase

from .assets import Asset, is_absolute_url

LINK_HEADER = "Link"
ASSOCIATED_CONTENT_HEADER = "X-Associated-Content"
FORWARDED_PROTO_HEADER = "X-Forwarded-Proto"

# Django keeps one value per header name, so repeated fields are folded
# into a comma-separated list (RFC 9110 section 5.3).
HEADER_SEPARATOR = ", "

# Every entry starts with "<" (Link) or a quote (X-Associated-Content).
_ENTRY_BOUNDARY = re.compile(r", (?=[<\"])")


def request_scheme(request: HttpRequest) -> str:
    """Scheme the client used: X-Forwarded-Proto, then TLS, then http."""
    forwarded = request.headers.get(FORWARDED_PROTO_HEADER, "")
    if forwarded:
        return forwarded
    if request.is_secure():
        return "https"
    return "http"


def resolve_url(url: str, scheme: str, host: str) -> str:
    """Make ``url`` absolute against ``scheme://host``.

    ``http:`` and ``https:`` URLs are returned unchanged. Other URLs are
    joined onto the host with redundant separators and dot segments
    collapsed.
    """
    if is_absolute_url(url):
        return url
    return f"{scheme}://{posixpath.normpath(f'{host}/{url}')}"


def link_value(url: str, asset_type: str = "") -> str:
    value = f"<{url}>; rel=preload"
    if asset_type:
        value += f"; as={asset_type}"
    return value


def associated_content_value(url: str) -> str:
    escaped = url.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _append_header(response: HttpResponseBase, name: str, values: list[str]) -> None:
    if not values:
        return
    existing = response.get(name)
    if existing:
        values = [existing, *values]
    response[name] = HEADER_SEPARATOR.join(values)


def add_preload_headers(
    response: HttpResponseBase,
    scheme: str,
    host: str,
    *assets: Asset,
) -> None:
    """Add a preload ``Link`` and an ``X-Associated-Content`` entry per asset.

    Relative asset URLs are resolved against ``scheme://host``. Entries keep
    the order of ``assets`` and are appended after any value the response
    already carries.
    """
    links: list[str] = []
    associated: list[str] = []
    for asset in assets:
        url = resolve_url(asset.url, scheme, host)
        links.append(link_value(url, asset.type))
        associated.append(associated_content_value(url))
    _append_header(response, LINK_HEADER, links)
    _append_header(response, ASSOCIATED_CONTENT_HEADER, associated)


def header_values(response: HttpResponseBase, name: str) -> list[str]:
    """Split a folded header back into its entries.

    Only separators followed by the start of a new entry split, so URLs that
    contain ``", "`` stay whole.
    """
    value = response.get(name)
    if not value:
        return []
    return _ENTRY_BOUNDARY.split(value)

