"""Load-once, in-memory cache of decoded preload manifests."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from .manifest import Manifest, read_manifest_file

logger = logging.getLogger(__name__)


class ManifestCache:
    """Thread-safe map of manifest name to decoded :class:`Manifest`.

    Each name is loaded at most once per process and kept until the
    process exits; later changes to the backing file are not picked up.
    A failed load caches nothing, so the next call retries.

    Loads for different names run concurrently; concurrent first loads of
    the same name share a single read.
    """

    def __init__(self) -> None:
        self._manifests: dict[str, Manifest] = {}
        self._load_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get_or_load(
        self,
        name: str,
        loader: Callable[[str], Manifest] | None = None,
    ) -> Manifest:
        """Return the cached manifest for ``name``, loading it on first use.

        ``loader`` defaults to :func:`read_manifest_file`.

        Raises:
            SourceOpenError, DecodeError: Propagated from ``loader``.
        """
        with self._lock:
            manifest = self._manifests.get(name)
            if manifest is not None:
                return manifest
            load_lock = self._load_locks.setdefault(name, threading.Lock())

        with load_lock:
            with self._lock:
                manifest = self._manifests.get(name)
            if manifest is not None:
                return manifest

            manifest = (loader or read_manifest_file)(name)
            with self._lock:
                self._manifests[name] = manifest
            logger.info("Loaded preload manifest %s (%d paths)", name, len(manifest))
            return manifest

    def get(self, name: str) -> Manifest | None:
        """Return the cached manifest without loading it."""
        with self._lock:
            return self._manifests.get(name)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._manifests

    def __len__(self) -> int:
        with self._lock:
            return len(self._manifests)

    def clear(self) -> None:
        """Forget every cached manifest. Intended for tests."""
        with self._lock:
            self._manifests.clear()
            self._load_locks.clear()


manifest_cache = ManifestCache()


def load_manifest(name: str) -> Manifest:
    """Read a manifest through the process-wide cache.

    The file is read and decoded on the first call for ``name`` only.
    Manifest files can be generated with the ``generate_preload_manifest``
    management command.
    """
    return manifest_cache.get_or_load(name)
