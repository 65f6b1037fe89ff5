"""Configuration for the WebP upload filter."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .types import CONVERTIBLE_MIME_TYPES

_TRUE = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if not value:
        return default
    return tuple(v.strip().lower() for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class OptimizerConfig:
    """Immutable settings, built once at startup."""

    photo_quality: int = 85  # JPEG/HEIC/HEIF/WebP/opaque PNG
    alpha_quality: int = 90  # PNG with alpha, GIF (better edges/alpha)
    convertible_mime_types: frozenset[str] = CONVERTIBLE_MIME_TYPES
    animated_gif_scan_bytes: int = 200 * 1024
    strip_metadata: bool = True
    disable_big_image_scaling: bool = True
    editors: tuple[str, ...] = ("pillow", "cwebp")

    @classmethod
    def load(cls) -> OptimizerConfig:
        """Load configuration from environment variables."""
        return cls(
            photo_quality=int(os.getenv("WEBP_QUALITY_PHOTO", "85")),
            alpha_quality=int(os.getenv("WEBP_QUALITY_ALPHA", "90")),
            animated_gif_scan_bytes=int(os.getenv("WEBP_GIF_SCAN_BYTES", str(200 * 1024))),
            strip_metadata=_env_flag("WEBP_STRIP_METADATA", True),
            disable_big_image_scaling=_env_flag("WEBP_DISABLE_BIG_IMAGE_SCALING", True),
            editors=_env_list("WEBP_EDITORS", ("pillow", "cwebp")),
        )
