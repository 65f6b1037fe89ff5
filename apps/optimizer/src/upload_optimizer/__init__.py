"""
WebP Upload Optimizer - the host-facing side of the converter.

This app plugs into a host's upload pipeline. It:
1. Registers a filter on the "upload handled" and "upload sideloaded" hooks
2. Converts each eligible upload to WebP, replacing the original
3. Refuses to activate where WebP output isn't possible

Deployment:
    pip install webp-upload-optimizer
    webp-upload-optimizer check
"""

from .hooks import HookRegistry
from .plugin import (
    BIG_IMAGE_SIZE_THRESHOLD,
    UPLOAD_HANDLED,
    UPLOAD_SIDELOADED,
    WEBP_QUALITY,
    UploadOptimizer,
)

__all__ = [
    "HookRegistry",
    "UploadOptimizer",
    "UPLOAD_HANDLED",
    "UPLOAD_SIDELOADED",
    "BIG_IMAGE_SIZE_THRESHOLD",
    "WEBP_QUALITY",
]
