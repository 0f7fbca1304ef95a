"""Preload manifest model and concurrent generation from HTML sources.

Pipeline: Open -> Scan -> Normalize -> Record
"""

from __future__ import annotations

import json
import logging
import os
import posixpath
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import IO, Any, NamedTuple

from .assets import Asset
from .conf import get_setting
from .exceptions import DecodeError, EncodeError, PreloadError, SourceOpenError
from .scanner import scan_html

logger = logging.getLogger(__name__)

HTML_EXTENSIONS = (".html", ".htm")


class Manifest(dict[str, list[Asset]]):
    """Assets to preload, keyed by request path.

    Keys always start with ``/``. A manifest is read-only once it has been
    published to request handling.
    """

    @classmethod
    def from_dict(cls, data: Any) -> Manifest:
        """Build a manifest from decoded JSON.

        Raises:
            DecodeError: If ``data`` does not have the manifest shape.
        """
        if not isinstance(data, dict):
            raise DecodeError(
                f"manifest must be a JSON object, got {type(data).__name__}"
            )
        manifest = cls()
        for path, entries in data.items():
            if not isinstance(entries, list):
                raise DecodeError(f"{path}: asset list expected")
            try:
                manifest[path] = [Asset.from_dict(entry) for entry in entries]
            except (KeyError, TypeError, AttributeError) as e:
                raise DecodeError(f"{path}: invalid asset entry") from e
        return manifest

    @classmethod
    def from_json(cls, text: str | bytes) -> Manifest:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise DecodeError(f"invalid manifest JSON: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        return {
            path: [asset.to_dict() for asset in assets]
            for path, assets in self.items()
        }

    def to_json(self, indent: int | None = 2) -> str:
        try:
            return json.dumps(self.to_dict(), indent=indent)
        except (TypeError, ValueError) as e:
            raise EncodeError(f"cannot encode manifest: {e}") from e


class PathNormalizer:
    """Turn a source file location into a manifest key.

    Strips ``strip_prefix``, forces a leading slash, maps
    ``/<index_file>`` to its directory and optionally drops the extension:

    >>> PathNormalizer(strip_prefix="public")("public/blog/index.html")
    '/blog/'
    """

    def __init__(
        self,
        strip_prefix: str = "",
        index_file: str = "index.html",
        strip_extension: bool = True,
    ) -> None:
        self.strip_prefix = strip_prefix
        self.index_file = index_file.lstrip("/")
        self.strip_extension = strip_extension

    @classmethod
    def from_settings(cls) -> PathNormalizer:
        return cls(
            strip_prefix=get_setting("STRIP_PREFIX"),
            index_file=get_setting("INDEX_FILE"),
            strip_extension=get_setting("STRIP_EXTENSION"),
        )

    def __call__(self, source: str | os.PathLike[str]) -> str:
        path = os.fspath(source).replace(os.sep, "/")
        if self.strip_prefix and path.startswith(self.strip_prefix):
            path = path[len(self.strip_prefix) :]
        if not path.startswith("/"):
            path = "/" + path
        if self.index_file and path.endswith("/" + self.index_file):
            path = path[: -len(self.index_file)]
        if self.strip_extension:
            path = posixpath.splitext(path)[0]
        return path


class ScanResult(NamedTuple):
    """Outcome of scanning one source."""

    source: str
    assets: list[Asset]
    error: PreloadError | None = None


def open_source(source: str) -> IO[bytes]:
    """Open a source file for scanning."""
    try:
        return open(source, "rb")  # noqa: SIM115
    except OSError as e:
        raise SourceOpenError(f"cannot open {source}: {e}") from e


def scan_source(
    source: str,
    *,
    exclude_absolute: bool = False,
    unique: bool = False,
    opener: Callable[[str], IO[Any]] = open_source,
) -> ScanResult:
    """Open and scan a single source, capturing any error in the result."""
    try:
        stream = opener(source)
    except PreloadError as e:
        return ScanResult(source, [], e)
    except OSError as e:
        return ScanResult(source, [], SourceOpenError(f"cannot open {source}: {e}"))

    try:
        with stream:
            assets = scan_html(stream, exclude_absolute=exclude_absolute, unique=unique)
    except PreloadError as e:
        return ScanResult(source, [], e)
    except OSError as e:
        return ScanResult(source, [], SourceOpenError(f"cannot read {source}: {e}"))
    return ScanResult(source, assets)


def unique_sources(sources: Iterable[str]) -> list[str]:
    """Drop repeated sources, keeping first-seen order."""
    return list(dict.fromkeys(sources))


def build_manifest(
    sources: Iterable[str],
    normalize: Callable[[str], str] | None = None,
    *,
    exclude_absolute: bool = False,
    unique: bool = False,
    max_workers: int | None = None,
    opener: Callable[[str], IO[Any]] = open_source,
) -> Manifest:
    """Scan many HTML sources concurrently and assemble a manifest.

    At most ``max_workers`` sources are open and being scanned at any
    time. Failures are logged per source and never abort the build, so the
    returned manifest may cover only part of ``sources``. When two sources
    normalize to the same key, whichever finishes last wins.

    Args:
        sources: File identifiers understood by ``opener``.
        normalize: Maps a source to its manifest key. Defaults to
            :meth:`PathNormalizer.from_settings`.
        exclude_absolute: Discard ``http:``/``https:`` asset URLs.
        unique: Keep a single asset per URL within each document.
        max_workers: Concurrency limit. Defaults to the ``MAX_WORKERS``
            setting.
        opener: Returns a readable stream for a source.
    """
    if normalize is None:
        normalize = PathNormalizer.from_settings()
    if max_workers is None:
        max_workers = get_setting("MAX_WORKERS")

    pending = unique_sources(sources)
    manifest = Manifest()
    if not pending:
        return manifest

    errors = 0
    workers = max(1, min(len(pending), max_workers))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(
                scan_source,
                source,
                exclude_absolute=exclude_absolute,
                unique=unique,
                opener=opener,
            )
            for source in pending
        ]
        for future in as_completed(futures):
            result = future.result()
            if result.error is not None:
                logger.error("%s: %s", result.source, result.error)
                errors += 1
                continue
            manifest[normalize(result.source)] = result.assets

    logger.info(
        "Built preload manifest: %d entries from %d sources (%d errors)",
        len(manifest),
        len(pending),
        errors,
    )
    return manifest


def find_html_files(root: str | os.PathLike[str]) -> list[str]:
    """List HTML files under ``root``, or ``root`` itself if it is a file."""
    root_path = Path(root)
    if root_path.is_file():
        return [os.fspath(root)]

    files: list[str] = []

    def _on_error(error: OSError) -> None:
        logger.warning("%s: %s", error.filename, error)

    for dirpath, _dirnames, filenames in os.walk(root_path, onerror=_on_error):
        for filename in filenames:
            if os.path.splitext(filename)[1] in HTML_EXTENSIONS:
                files.append(os.path.normpath(os.path.join(dirpath, filename)))
    return sorted(files)


def read_manifest_file(name: str | os.PathLike[str]) -> Manifest:
    """Read and decode a manifest JSON file.

    Raises:
        SourceOpenError: If the file cannot be read.
        DecodeError: If it is not a valid manifest.
    """
    try:
        text = Path(name).read_bytes()
    except OSError as e:
        raise SourceOpenError(f"cannot read manifest {name}: {e}") from e
    return Manifest.from_json(text)


def write_manifest_file(manifest: Manifest, name: str | os.PathLike[str]) -> None:
    """Encode a manifest and write it to ``name``.

    Raises:
        EncodeError: If the manifest cannot be serialized.
        OSError: If the file cannot be written.
    """
    content = manifest.to_json()
    Path(name).write_text(content, encoding="utf-8")
