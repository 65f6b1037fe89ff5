"""
Encode policy: turns a classification into WebP encode parameters.
"""

from __future__ import annotations

import logging
from typing import Callable

from upload_shared.config import OptimizerConfig
from upload_shared.types import (
    GIF_MIME,
    PNG_MIME,
    Classification,
    ConversionDecision,
    OutputStrategy,
    Rotation,
)

logger = logging.getLogger(__name__)

QualityOverride = Callable[[int, Classification], int]


def clamp_quality(quality: int) -> int:
    return max(0, min(100, int(quality)))


def needs_alpha_quality(classification: Classification) -> bool:
    """GIFs and PNGs with (or with unknown) alpha keep edges and alpha sharper."""
    if classification.resolved_type == GIF_MIME:
        return True
    return classification.resolved_type == PNG_MIME and classification.has_alpha is not False


def choose_quality(classification: Classification, config: OptimizerConfig) -> int:
    if needs_alpha_quality(classification):
        return config.alpha_quality
    return config.photo_quality


def output_strategy(classification: Classification) -> OutputStrategy:
    # A .webp upload is re-encoded under its own name so its URL survives.
    return "in_place" if classification.is_webp_ext else "new_unique_name"


def decide(
    classification: Classification,
    rotation: Rotation = 0,
    config: OptimizerConfig | None = None,
    quality_override: QualityOverride | None = None,
) -> ConversionDecision:
    """Pick quality, rotation and output naming for one upload."""
    if not classification.eligible:
        return ConversionDecision.skip()

    config = config or OptimizerConfig()
    quality = choose_quality(classification, config)

    if quality_override is not None:
        try:
            quality = int(quality_override(quality, classification))
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid quality override: %s", e)

    return ConversionDecision(
        convert=True,
        quality=clamp_quality(quality),
        rotation=rotation,
        output_strategy=output_strategy(classification),
    )
