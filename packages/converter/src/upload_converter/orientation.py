"""
EXIF orientation handling for JPEG uploads.

Rotations are counter-clockwise degrees, the convention of both
PIL.Image.rotate and the editors in this package.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from PIL import ExifTags, Image

from upload_shared.errors import MetadataReadFailed
from upload_shared.types import JPEG_MIME, Rotation

logger = logging.getLogger(__name__)

ORIENTATION_ROTATIONS: dict[int, Rotation] = {
    3: 180,
    6: -90,
    8: 90,
}

OrientationReader = Callable[[Path], int | None]


def read_orientation(path: Path) -> int | None:
    """Return the EXIF Orientation tag, or None when the file has none."""
    try:
        with Image.open(path) as img:
            value = img.getexif().get(ExifTags.Base.Orientation)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise MetadataReadFailed(f"Could not read EXIF from {path.name}: {e}") from e

    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MetadataReadFailed(f"Bad Orientation tag in {path.name}: {value!r}") from e


def rotation_for_orientation(tag: int | None) -> Rotation:
    return ORIENTATION_ROTATIONS.get(tag, 0) if tag is not None else 0


def orientation_rotation(
    path: Path,
    mime_type: str,
    reader: OrientationReader | None = read_orientation,
) -> Rotation:
    """Rotation needed to bake a JPEG's orientation into its pixels; 0 otherwise."""
    if mime_type != JPEG_MIME or reader is None:
        return 0
    try:
        tag = reader(path)
    except MetadataReadFailed as e:
        logger.debug("%s", e)
        return 0
    rotation = rotation_for_orientation(tag)
    if rotation:
        logger.debug("%s has orientation %s, rotating %d", path.name, tag, rotation)
    return rotation
