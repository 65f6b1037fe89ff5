"""
The upload optimizer plugin: converts uploaded images to WebP and replaces the original.

Wiring:
    boot()      registers the upload filter on both upload hooks
    activate()  refuses to run where WebP can't be written
"""

from __future__ import annotations

import logging
from typing import Any

from upload_converter import ConversionResult, UploadConversion, editor_supports
from upload_converter.editors import configured_editors
from upload_shared.config import OptimizerConfig
from upload_shared.errors import ActivationError
from upload_shared.types import WEBP_MIME, Classification, UploadDescriptor

from .hooks import HookRegistry

logger = logging.getLogger(__name__)

UPLOAD_HANDLED = "upload_handled"
UPLOAD_SIDELOADED = "upload_sideloaded"
BIG_IMAGE_SIZE_THRESHOLD = "big_image_size_threshold"
WEBP_QUALITY = "webp_upload_quality"

UPLOAD_PRIORITY = 20


def _no_threshold(threshold: Any, *args: Any) -> None:
    return None


class UploadOptimizer:
    """Hooks WebP conversion into a host's upload pipeline."""

    def __init__(self, registry: HookRegistry, config: OptimizerConfig | None = None):
        self._registry = registry
        self.config = config or OptimizerConfig()

    def boot(self) -> None:
        """Register the upload filters."""
        for hook in (UPLOAD_HANDLED, UPLOAD_SIDELOADED):
            self._registry.add_filter(hook, self.maybe_convert_upload_to_webp, UPLOAD_PRIORITY)

        if self.config.disable_big_image_scaling:
            self._registry.add_filter(BIG_IMAGE_SIZE_THRESHOLD, _no_threshold)

        logger.info("Upload optimizer booted (editors: %s)", ", ".join(self.config.editors))

    def deactivate(self) -> None:
        """Remove everything boot() registered."""
        for hook in (UPLOAD_HANDLED, UPLOAD_SIDELOADED):
            self._registry.remove_filter(hook, self.maybe_convert_upload_to_webp)
        self._registry.remove_filter(BIG_IMAGE_SIZE_THRESHOLD, _no_threshold)

    def activate(self) -> None:
        """
        Check that this environment can write WebP at all.

        Raises:
            ActivationError: With a message for the operator, after deactivating
        """
        if not configured_editors(self.config.editors):
            self._fail_activation("No image editor is available on this installation.")

        if not editor_supports(WEBP_MIME, self.config.editors):
            self._fail_activation(
                "This server cannot generate WebP images "
                "(Pillow WebP support and cwebp are both missing)."
            )

    def _fail_activation(self, message: str) -> None:
        self.deactivate()
        logger.error("Upload optimizer deactivated: %s", message)
        raise ActivationError(message)

    def convert(self, upload: UploadDescriptor) -> ConversionResult:
        return UploadConversion(
            upload,
            self.config,
            quality_override=self._filter_quality,
        ).run()

    def maybe_convert_upload_to_webp(
        self, upload: UploadDescriptor, *args: Any
    ) -> UploadDescriptor:
        """Upload filter. Returns the converted descriptor, or `upload` itself."""
        try:
            return self.convert(upload).upload
        except Exception:
            # The upload must go through regardless.
            logger.exception("Unexpected error converting %s", upload.path)
            return upload

    def _filter_quality(self, quality: int, classification: Classification) -> int:
        return self._registry.apply_filters(WEBP_QUALITY, quality, classification)
