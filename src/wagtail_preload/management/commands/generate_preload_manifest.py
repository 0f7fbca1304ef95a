"""Management command to generate a preload manifest from HTML files."""

from __future__ import annotations

import logging
from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser

from wagtail_preload.conf import get_setting
from wagtail_preload.exceptions import EncodeError
from wagtail_preload.manifest import (
    Manifest,
    PathNormalizer,
    build_manifest,
    find_html_files,
    unique_sources,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Scan .html/.htm files under the given sources (default: current "
        "directory) and write a preload manifest in JSON format."
    )

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "sources",
            nargs="*",
            help="Files or directories to scan. Defaults to the current directory.",
        )
        parser.add_argument(
            "-o",
            "--output",
            default="",
            help="Write the manifest to this file instead of stdout.",
        )
        parser.add_argument(
            "-i",
            "--index-file",
            default=None,
            help="Index file name to replace with / in manifest keys.",
        )
        parser.add_argument(
            "--strip",
            default=None,
            help="Strip this prefix from manifest keys.",
        )
        parser.add_argument(
            "--keep-extension",
            action="store_true",
            help="Keep file extensions in manifest keys.",
        )
        parser.add_argument(
            "--exclude-absolute",
            action="store_true",
            default=None,
            help="Skip assets with absolute http(s) URLs.",
        )
        parser.add_argument(
            "--unique",
            action="store_true",
            default=None,
            help="List each asset URL only once per page.",
        )
        parser.add_argument(
            "--workers",
            type=int,
            default=None,
            help="Maximum number of files scanned concurrently.",
        )
        parser.add_argument(
            "--pages",
            action="store_true",
            dest="include_pages",
            help="Also render and scan all live Wagtail pages.",
        )

    def handle(self, **options: object) -> None:
        sources = options.get("sources") or ["."]
        output = options.get("output")
        exclude_absolute = _option_or_setting(
            options, "exclude_absolute", "EXCLUDE_ABSOLUTE"
        )
        unique = _option_or_setting(options, "unique", "UNIQUE")

        normalize = PathNormalizer(
            strip_prefix=_option_or_setting(options, "strip", "STRIP_PREFIX"),
            index_file=_option_or_setting(options, "index_file", "INDEX_FILE"),
            strip_extension=(
                False
                if options.get("keep_extension")
                else get_setting("STRIP_EXTENSION")
            ),
        )

        files: list[str] = []
        for source in sources:  # type: ignore[attr-defined]
            files.extend(find_html_files(source))
        files = unique_sources(files)

        manifest = build_manifest(
            files,
            normalize,
            exclude_absolute=exclude_absolute,
            unique=unique,
            max_workers=options.get("workers"),  # type: ignore[arg-type]
        )

        if options.get("include_pages"):
            from wagtail_preload.pages import build_page_manifest, live_pages

            manifest.update(
                build_page_manifest(
                    live_pages(), exclude_absolute=exclude_absolute, unique=unique
                )
            )

        self._write(manifest, output)  # type: ignore[arg-type]

        if output:
            self.stderr.write(
                self.style.SUCCESS(
                    f"Wrote {len(manifest)} manifest entries from "
                    f"{len(files)} file(s) to {output}"
                )
            )

    def _write(self, manifest: Manifest, output: str) -> None:
        """Write the encoded manifest to ``output`` or stdout."""
        try:
            content = manifest.to_json()
        except EncodeError as e:
            raise CommandError(str(e)) from e

        if not output:
            self.stdout.write(content)
            return

        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise CommandError(f"Cannot write {output}: {e}") from e
        logger.info("Wrote preload manifest to %s", output)


def _option_or_setting(options: dict[str, Any], option: str, setting: str) -> Any:
    """Use the command-line option when given, else the WAGTAIL_PRELOAD setting."""
    value = options.get(option)
    if value is None:
        return get_setting(setting)
    return value
