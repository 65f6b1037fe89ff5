"""
Upload classification.

Decides what an upload really is and whether it should become a WebP:
content sniffing over the declared MIME, animated GIF detection, and
alpha detection for PNGs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import numpy as np
from PIL import Image

from upload_shared.config import OptimizerConfig
from upload_shared.errors import SniffFailed
from upload_shared.files import has_webp_ext
from upload_shared.types import GIF_MIME, JPEG_MIME, PNG_MIME, Classification

logger = logging.getLogger(__name__)

# Graphic Control Extension: block terminator, introducer, label, block size.
GIF_GCE_MARKER = b"\x00\x21\xf9\x04"

# Pillow reports multi-picture camera JPEGs as MPO.
_SNIFF_ALIASES = {"image/mpo": JPEG_MIME}

_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")
ALPHA_SAMPLE_GRID = 9

Sniffer = Callable[[Path, str], str]
AlphaProbe = Callable[[Path], bool]


def sniff_mime_type(path: Path, filename: str) -> str:
    """
    Detect the MIME type from the file contents.

    Raises SniffFailed if Pillow can't identify the file.
    """
    try:
        with Image.open(path) as img:
            mime = img.get_format_mimetype()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise SniffFailed(f"Could not identify {filename}: {e}") from e

    if not mime:
        raise SniffFailed(f"No MIME type known for {filename}")
    return _SNIFF_ALIASES.get(mime, mime)


def is_animated_gif(path: Path, scan_bytes: int = 200 * 1024) -> bool:
    """
    Heuristic check for a multi-frame GIF.

    Counts Graphic Control Extensions in the first `scan_bytes` of the file;
    more than one usually means more than one frame.
    """
    try:
        with open(path, "rb") as f:
            head = f.read(scan_bytes)
    except OSError as e:
        logger.debug("Could not read %s for GIF scan: %s", path, e)
        return False
    return head.count(GIF_GCE_MARKER) > 1


def png_has_alpha(path: Path, grid: int = ALPHA_SAMPLE_GRID) -> bool:
    """
    Check whether a PNG uses transparency.

    A transparency chunk counts as alpha. Palette images are decided by that
    chunk alone. Images with an alpha channel are sampled on an evenly spaced
    grid x grid set of pixels. Returns True when the file can't be decoded.
    """
    try:
        with Image.open(path) as img:
            if "transparency" in img.info:
                return True
            if img.mode not in _ALPHA_MODES:
                return False
            alpha = np.asarray(img.getchannel("A"))
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.debug("Could not decode %s, assuming alpha: %s", path, e)
        return True

    h, w = alpha.shape[:2]
    if h == 0 or w == 0:
        return True
    ys = np.linspace(0, h - 1, grid).astype(int)
    xs = np.linspace(0, w - 1, grid).astype(int)
    samples = alpha[np.ix_(ys, xs)]
    return bool((samples < 255).any())


def resolve_mime_type(
    path: Path,
    declared: str,
    sniffer: Sniffer | None = sniff_mime_type,
) -> str:
    """Prefer the sniffed type; fall back to the declared one."""
    if sniffer is None:
        return declared
    try:
        detected = sniffer(path, path.name)
    except SniffFailed as e:
        logger.debug("%s", e)
        return declared
    return detected or declared


def classify_upload(
    path: Path,
    declared: str,
    config: OptimizerConfig | None = None,
    sniffer: Sniffer | None = sniff_mime_type,
    alpha_probe: AlphaProbe | None = png_has_alpha,
) -> Classification:
    """Classify an upload. Without an alpha probe every PNG counts as alpha-bearing."""
    config = config or OptimizerConfig()
    resolved = resolve_mime_type(path, declared, sniffer)
    webp_ext = has_webp_ext(path)

    if not webp_ext and resolved not in config.convertible_mime_types:
        return Classification(
            eligible=False,
            resolved_type=resolved,
            reason=f"unsupported type {resolved}",
        )

    # Flattening an animated GIF to one frame loses the animation.
    if resolved == GIF_MIME and is_animated_gif(path, config.animated_gif_scan_bytes):
        return Classification(
            eligible=False,
            resolved_type=resolved,
            is_webp_ext=webp_ext,
            is_animated=True,
            reason="animated GIF",
        )

    has_alpha = None
    if resolved == PNG_MIME:
        has_alpha = alpha_probe(path) if alpha_probe is not None else True

    logger.debug(
        "Classified %s: %s (declared %s, alpha=%s)",
        path.name, resolved, declared, has_alpha,
    )
    return Classification(
        eligible=True,
        resolved_type=resolved,
        is_webp_ext=webp_ext,
        has_alpha=has_alpha,
    )
