"""Command line entry point for stamping images with the watermark."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from .config import ImagerSettings, build_asset_catalog, get_settings
from .logging_config import configure_logging
from .services import DispatchResult, StampDispatcher, StorageError, get_storage_service
from .transforms import ImagerError, WatermarkCompositor

LOGGER = logging.getLogger(__name__)


class StampCLI:
    """Object-oriented orchestrator for the ``imager-stamp`` workflow."""

    def __init__(
        self,
        *,
        settings_provider=get_settings,
        catalog_factory=None,
        storage_factory=None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings_provider = settings_provider
        self._catalog_factory = catalog_factory or build_asset_catalog
        self._storage_factory = storage_factory or get_storage_service
        self.logger = logger or LOGGER

    def run(self, argv: Sequence[str] | None = None) -> int:
        """Execute the CLI workflow and return the process exit code."""

        args = self.parse_args(argv)
        settings = self._settings_provider()
        try:
            if args.command == "file":
                self.stamp_file(args, settings)
            else:
                self.log_result(self.dispatch_event(args, settings))
        except (ImagerError, StorageError, OSError) as exc:
            self.logger.error("Stamping failed: %s", exc)
            return 1
        return 0

    def parse_args(self, argv: Sequence[str] | None = None) -> argparse.Namespace:
        parser = argparse.ArgumentParser(prog="imager-stamp", description=__doc__)
        subparsers = parser.add_subparsers(dest="command", required=True)

        file_parser = subparsers.add_parser("file", help="Stamp a local JPEG or PNG file")
        file_parser.add_argument("input", type=Path, help="Image to stamp")
        file_parser.add_argument(
            "--output",
            type=Path,
            default=None,
            help="Destination PNG (default: <prefix><stem>.png next to the input)",
        )
        file_parser.add_argument(
            "--asset-dir",
            type=Path,
            default=None,
            help="Directory holding size-{N}.png watermark assets",
        )

        event_parser = subparsers.add_parser(
            "event", help="Handle a storage notification against the configured backend"
        )
        event_parser.add_argument("event_name", help="e.g. ObjectCreated:Put or ObjectRemoved:Delete")
        event_parser.add_argument("key", help="Object key the notification refers to")
        return parser.parse_args(argv)

    def _build_compositor(self, settings: ImagerSettings, asset_dir: Path | None = None) -> WatermarkCompositor:
        if asset_dir is not None:
            settings = replace(settings, asset_directory=asset_dir)
        return WatermarkCompositor(self._catalog_factory(settings))

    def stamp_file(self, args: argparse.Namespace, settings: ImagerSettings) -> Path:
        source: Path = args.input
        output: Path = args.output or source.with_name(f"{settings.transform_prefix}{source.stem}.png")
        compositor = self._build_compositor(settings, args.asset_dir)

        with source.open("rb") as stream:
            stamped = compositor.stamp(stream)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(stamped)
        self.logger.info("Stamped %s -> %s (%d bytes)", source, output, len(stamped))
        return output

    def dispatch_event(self, args: argparse.Namespace, settings: ImagerSettings) -> DispatchResult:
        dispatcher = StampDispatcher(
            self._build_compositor(settings),
            self._storage_factory(settings),
            transform_prefix=settings.transform_prefix,
            log_directory=settings.log_directory,
        )
        return dispatcher.handle_event(args.event_name, args.key)

    def log_result(self, result: DispatchResult) -> None:
        if result.output_key:
            self.logger.info("%s %s -> %s", result.action.capitalize(), result.key, result.output_key)
        else:
            self.logger.info("%s %s", result.action.capitalize(), result.key)


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging(level=get_settings().log_level)
    return StampCLI().run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
