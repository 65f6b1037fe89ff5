"""
Data model for the WebP upload filter.

Flow per upload:
    UploadDescriptor -> Classification -> ConversionDecision -> UploadDescriptor

Only the descriptor crosses the host boundary. The other two are computed
fresh for every upload and never stored.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Literal

JPEG_MIME = "image/jpeg"
PNG_MIME = "image/png"
GIF_MIME = "image/gif"
HEIC_MIME = "image/heic"
HEIF_MIME = "image/heif"
WEBP_MIME = "image/webp"

CONVERTIBLE_MIME_TYPES: frozenset[str] = frozenset({
    JPEG_MIME,
    PNG_MIME,
    GIF_MIME,  # non-animated only
    HEIC_MIME,
    HEIF_MIME,
    WEBP_MIME,
})

# Type literal
OutputStrategy = Literal["in_place", "new_unique_name"]
Rotation = Literal[0, 90, -90, 180]


@dataclass
class UploadDescriptor:
    """
    One uploaded file as handed over by the host's upload pipeline.

    `type` is whatever MIME the caller declared and is not trusted.
    `path` and `url` change together, and only after a successful conversion.
    """
    path: str
    type: str
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Classification:
    """What the classifier found out about an upload."""
    eligible: bool
    resolved_type: str
    is_webp_ext: bool = False
    is_animated: bool = False
    # None when not applicable (not a PNG) or not determined.
    has_alpha: bool | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ConversionDecision:
    """Encode parameters chosen for one upload."""
    convert: bool
    quality: int = 0
    rotation: Rotation = 0
    output_strategy: OutputStrategy = "new_unique_name"

    @classmethod
    def skip(cls) -> "ConversionDecision":
        return cls(convert=False)

    @property
    def in_place(self) -> bool:
        return self.output_strategy == "in_place"
