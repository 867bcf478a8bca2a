"""Route storage change notifications to the watermark compositor.

Originals are stamped and written back under the transform prefix; removing an
original removes its stamped counterpart. Objects that already carry the
prefix are never stamped again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..config import DEFAULT_TRANSFORM_PREFIX
from ..logging_utils import invocation_context
from ..transforms.codec import OUTPUT_CONTENT_TYPE
from ..transforms.compositor import WatermarkCompositor
from .storage import ObjectStorage


LOGGER = logging.getLogger(__name__)

ACTION_STAMPED = "stamped"
ACTION_SKIPPED = "skipped"
ACTION_DELETED = "deleted"
ACTION_IGNORED = "ignored"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of handling a single storage notification."""

    action: str
    key: str
    output_key: str | None = None


class StampDispatcher:
    """Dispatcher-facing entry point for object-created/removed notifications."""

    def __init__(
        self,
        compositor: WatermarkCompositor,
        storage: ObjectStorage,
        *,
        transform_prefix: str = DEFAULT_TRANSFORM_PREFIX,
        log_directory: Path | None = None,
    ) -> None:
        if not transform_prefix:
            raise ValueError("transform_prefix must be a non-empty string")
        self.compositor = compositor
        self.storage = storage
        self.transform_prefix = transform_prefix
        self.log_directory = log_directory

    def is_transformed(self, key: str) -> bool:
        return self.transform_prefix in key

    def transformed_key(self, key: str) -> str:
        return f"{self.transform_prefix}{key}"

    def handle_event(self, event_name: str, key: str) -> DispatchResult:
        """Dispatch an already-parsed notification by its event name."""

        if "ObjectCreated" in event_name:
            return self.handle_created(key)
        if "ObjectRemoved" in event_name:
            return self.handle_removed(key)
        LOGGER.info("Unsupported event", extra={"event_name": event_name, "key": key})
        return DispatchResult(action=ACTION_IGNORED, key=key)

    def handle_created(self, key: str) -> DispatchResult:
        """Stamp the object at ``key`` and store the result under the prefix."""

        with invocation_context(
            key=key,
            log_dir=self.log_directory,
            extra_context={"event": "created"},
        ) as ctx:
            log = ctx.logger
            if self.is_transformed(key):
                log.info("File already transformed")
                return DispatchResult(action=ACTION_SKIPPED, key=key)

            source = self.storage.read_object(key)
            stamped = self.compositor.stamp(source, logger=log)
            output_key = self.transformed_key(key)
            result = self.storage.write_object(output_key, stamped, content_type=OUTPUT_CONTENT_TYPE)
            log.info("Image stamped", extra={"output_key": result.key, "bytes": len(stamped)})
            return DispatchResult(action=ACTION_STAMPED, key=key, output_key=output_key)

    def handle_removed(self, key: str) -> DispatchResult:
        """Delete the stamped counterpart of a removed original."""

        with invocation_context(
            key=key,
            log_dir=self.log_directory,
            extra_context={"event": "removed"},
        ) as ctx:
            log = ctx.logger
            if self.is_transformed(key):
                log.info("Removed object is a stamped artifact; nothing to delete")
                return DispatchResult(action=ACTION_SKIPPED, key=key)

            output_key = self.transformed_key(key)
            self.storage.delete_object(output_key)
            log.info("Deleted stamped object", extra={"output_key": output_key})
            return DispatchResult(action=ACTION_DELETED, key=key, output_key=output_key)
