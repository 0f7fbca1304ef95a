"""Preload asset value type."""

from __future__ import annotations

from typing import Any, NamedTuple

from django.db import models


class RequestType(models.TextChoices):
    """Fetch request destinations usable in ``Link: ...; as=<type>``."""

    AUDIO = "audio", "Audio"
    FONT = "font", "Font"
    IMAGE = "image", "Image"
    SCRIPT = "script", "Script"
    STYLE = "style", "Style"
    TRACK = "track", "Track"
    VIDEO = "video", "Video"


class Asset(NamedTuple):
    """A resource referenced by a page.

    ``type`` is one of the :class:`RequestType` values, or ``""`` when the
    request type is unknown (e.g. ``<link rel="import">``).
    """

    url: str
    type: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "type": str(self.type)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        """Build an asset from a decoded manifest entry.

        Raises:
            KeyError: If ``url`` is missing.
            TypeError: If ``url`` or a non-null ``type`` is not a string.
        """
        url = data["url"]
        asset_type = data.get("type")
        if not isinstance(url, str):
            raise TypeError(f"asset url must be a string, got {type(url).__name__}")
        if asset_type is None:
            asset_type = ""
        elif not isinstance(asset_type, str):
            raise TypeError(
                f"asset type must be a string, got {type(asset_type).__name__}"
            )
        return cls(url=url, type=asset_type)


def is_absolute_url(url: str) -> bool:
    """Return True for ``http:`` and ``https:`` URLs."""
    return url.startswith(("http:", "https:"))
