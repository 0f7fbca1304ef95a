"""On-demand asset extraction endpoint."""

from __future__ import annotations

import logging

import httpx
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .conf import get_setting
from .exceptions import ParseError
from .scanner import scan_html

logger = logging.getLogger(__name__)


@csrf_exempt
def extract_assets_view(request: HttpRequest) -> HttpResponse:
    """Return the preloadable assets of an HTML document as JSON.

    ``POST`` scans the request body. ``GET`` fetches the page given by the
    ``url`` query parameter (``https://`` is assumed when no scheme is
    given) and scans the response.
    """
    if request.method == "POST":
        markup = request.body
    elif request.method == "GET":
        url = request.GET.get("url", "")
        if not url:
            return HttpResponse("Missing url parameter", status=400)
        if not url.startswith(("http:", "https:")):
            url = f"https://{url}"
        try:
            upstream = fetch_page(url)
        except httpx.HTTPError as e:
            logger.warning("Fetching %s failed: %s", url, e)
            return HttpResponse(str(e), status=400)
        if upstream.status_code != 200:
            return HttpResponse(status=upstream.status_code)
        markup = upstream.text
    else:
        return HttpResponse(f"Unsupported method {request.method}", status=405)

    try:
        assets = scan_html(markup, exclude_absolute=False)
    except ParseError as e:
        return HttpResponse(str(e), status=400)
    return JsonResponse(
        [asset.to_dict() for asset in assets],
        safe=False,
        json_dumps_params={"indent": 2},
    )


def fetch_page(url: str) -> httpx.Response:
    """GET ``url`` following redirects, with the FETCH_TIMEOUT setting."""
    timeout = httpx.Timeout(get_setting("FETCH_TIMEOUT"))
    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        return client.get(url)
