"""Configuration and settings for wagtail-preload."""

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    # Middleware
    "ENABLED": True,
    "MANIFEST_PATH": None,
    # Seconds before a failed manifest load is retried; None never retries.
    "RETRY_INTERVAL": 60.0,
    # Manifest keys
    "INDEX_FILE": "index.html",
    "STRIP_PREFIX": "",
    "STRIP_EXTENSION": True,
    # Scanning
    "EXCLUDE_ABSOLUTE": False,
    "UNIQUE": False,
    "MAX_WORKERS": 100,
    # Extraction view
    "FETCH_TIMEOUT": 10.0,
}


_UNSET = object()


def get_setting(key: str, default: Any = _UNSET) -> Any:
    """Get a setting from WAGTAIL_PRELOAD dict or return default."""
    user_settings: dict[str, Any] = getattr(settings, "WAGTAIL_PRELOAD", {})
    fallback = DEFAULTS.get(key) if default is _UNSET else default
    return user_settings.get(key, fallback)
