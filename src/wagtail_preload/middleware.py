"""Middleware and view decorator that add preload headers from a manifest."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.core.exceptions import DisallowedHost, MiddlewareNotUsed
from django.http import HttpRequest, HttpResponseBase

from .cache import load_manifest
from .conf import get_setting
from .exceptions import PreloadError
from .headers import add_preload_headers, request_scheme
from .manifest import Manifest

logger = logging.getLogger(__name__)


class PreloadMiddleware:
    """Add ``Link: <url>; rel=preload`` headers for pages in the manifest.

    The manifest named by the ``MANIFEST_PATH`` setting is loaded through
    the process-wide cache on the first request. Requests whose path has
    no manifest entry pass through untouched, and the response body is
    never modified.

    If the manifest cannot be loaded, a warning is logged once and requests
    are served without headers. Loading is retried after ``RETRY_INTERVAL``
    seconds, so a manifest written after startup is picked up; with
    ``RETRY_INTERVAL = None`` a restart is required instead.
    """

    def __init__(
        self, get_response: Callable[[HttpRequest], HttpResponseBase]
    ) -> None:
        if not get_setting("ENABLED"):
            raise MiddlewareNotUsed("wagtail-preload is disabled")
        manifest_path = get_setting("MANIFEST_PATH")
        if not manifest_path:
            raise MiddlewareNotUsed("WAGTAIL_PRELOAD['MANIFEST_PATH'] is not set")
        self.get_response = get_response
        self.manifest_path = str(manifest_path)
        self.retry_interval: float | None = get_setting("RETRY_INTERVAL")
        self._retry_at: float | None = None

    def __call__(self, request: HttpRequest) -> HttpResponseBase:
        response = self.get_response(request)
        manifest = self._get_manifest()
        if manifest is not None:
            apply_preload_headers(manifest, request, response)
        return response

    def _get_manifest(self) -> Manifest | None:
        if self._retry_at is not None and time.monotonic() < self._retry_at:
            return None
        try:
            manifest = load_manifest(self.manifest_path)
        except PreloadError as e:
            if self._retry_at is None:
                logger.warning(
                    "Preload manifest %s unavailable, serving without preload "
                    "headers: %s",
                    self.manifest_path,
                    e,
                )
            if self.retry_interval is None:
                self._retry_at = math.inf
            else:
                self._retry_at = time.monotonic() + self.retry_interval
            return None
        if self._retry_at is not None:
            logger.info("Preload manifest %s loaded after retry", self.manifest_path)
            self._retry_at = None
        return manifest


def apply_preload_headers(
    manifest: Manifest,
    request: HttpRequest,
    response: HttpResponseBase,
) -> None:
    """Add preload headers to ``response`` if ``request.path`` is in the manifest.

    An entry with no assets adds nothing. A disallowed Host header is logged
    and leaves the response unchanged.
    """
    assets = manifest.get(request.path)
    if assets is None:
        return

    scheme = request_scheme(request)
    try:
        host = request.get_host()
    except DisallowedHost as e:
        logger.warning("Skipping preload headers for %s: %s", request.path, e)
        return

    add_preload_headers(response, scheme, host, *assets)
    logger.debug("Added %d preload header(s) for %s", len(assets), request.path)


def preload_headers(
    manifest: Manifest,
) -> Callable[[Callable[..., HttpResponseBase]], Callable[..., HttpResponseBase]]:
    """View decorator adding preload headers from ``manifest``.

    The view always runs; its response gets the headers for the request
    path, if any::

        @preload_headers(load_manifest("preload-manifest.json"))
        def home(request):
            ...
    """

    def decorator(
        view_func: Callable[..., HttpResponseBase],
    ) -> Callable[..., HttpResponseBase]:
        @wraps(view_func)
        def _wrapped_view(
            request: HttpRequest, *args: Any, **kwargs: Any
        ) -> HttpResponseBase:
            response = view_func(request, *args, **kwargs)
            apply_preload_headers(manifest, request, response)
            return response

        return _wrapped_view

    return decorator
