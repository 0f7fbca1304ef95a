"""Build preload manifest entries from live Wagtail pages."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlparse

from .exceptions import PreloadError
from .manifest import Manifest
from .scanner import scan_html

logger = logging.getLogger(__name__)


def render_page_html(page: Any) -> str:
    """Render a page's full template HTML as an anonymous visitor sees it."""
    from django.contrib.auth.models import AnonymousUser
    from django.template.loader import render_to_string
    from django.test import RequestFactory

    request = RequestFactory().get(page_path(page) or "/")
    request.user = AnonymousUser()
    template = page.get_template(request)
    context = page.get_context(request)
    return render_to_string(template, context, request=request)


def page_path(page: Any) -> str | None:
    """Manifest key for a page: the path of its URL, or None if unroutable."""
    url = page.get_url()
    if not url:
        return None
    return urlparse(url).path or "/"


def live_pages() -> list[Any]:
    """All live pages, as their specific subclasses."""
    from wagtail.models import Page

    return list(Page.objects.live().specific())


def build_page_manifest(
    pages: Iterable[Any],
    *,
    exclude_absolute: bool = False,
    unique: bool = False,
) -> Manifest:
    """Render and scan each page, keyed by its URL path.

    Pages are rendered one at a time in the calling thread. Pages without a
    URL are skipped; render and parse failures are logged and skipped.
    """
    manifest = Manifest()
    for page in pages:
        path = page_path(page)
        if path is None:
            logger.debug("Skipping page %s: not routable", page.pk)
            continue
        try:
            html = render_page_html(page)
        except Exception:
            logger.exception("Failed to render page %s", page.pk)
            continue
        try:
            manifest[path] = scan_html(
                html, exclude_absolute=exclude_absolute, unique=unique
            )
        except PreloadError as e:
            logger.error("%s: %s", path, e)
    logger.info("Built preload manifest: %d entries from Wagtail pages", len(manifest))
    return manifest
