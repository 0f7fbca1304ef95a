"""Exceptions raised by wagtail-preload."""

from __future__ import annotations


class PreloadError(Exception):
    """Base class for all wagtail-preload errors."""


class ParseError(PreloadError):
    """An HTML document could not be decoded or parsed."""


class SourceOpenError(PreloadError):
    """A source document or manifest file could not be opened or read."""


class DecodeError(PreloadError):
    """A persisted manifest is not valid JSON or has the wrong shape."""


class EncodeError(PreloadError):
    """A manifest could not be serialized."""
