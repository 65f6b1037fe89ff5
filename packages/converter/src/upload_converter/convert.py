"""
Per-upload conversion to WebP.

This module runs the whole pipeline for one uploaded file:
1. Classify (sniffed type, animated GIF, PNG alpha)
2. Read JPEG orientation
3. Choose quality and output naming
4. Encode through an image editor and replace the original

Any step can decline. The upload then comes back exactly as it went in.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from upload_shared.config import OptimizerConfig
from upload_shared.errors import ConversionError, NotEligible
from upload_shared.files import delete_file, unique_webp_target
from upload_shared.types import Classification, ConversionDecision, UploadDescriptor

from .analysis import AlphaProbe, Sniffer, classify_upload, png_has_alpha, sniff_mime_type
from .editors import EditorFactory, get_image_editor
from .encoder import encode_webp, replace_original
from .orientation import OrientationReader, orientation_rotation, read_orientation
from .policy import QualityOverride, decide

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Outcome of one upload conversion."""
    upload: UploadDescriptor
    converted: bool = False
    classification: Classification | None = None
    decision: ConversionDecision | None = None
    error: ConversionError | None = None


class UploadConversion:
    """
    Converts one uploaded image to WebP, replacing the original file.

    Collaborators are injectable. Passing None for an optional facility
    (sniffer, alpha_probe, orientation_reader) behaves as if the host didn't
    have it.
    """

    def __init__(
        self,
        upload: UploadDescriptor,
        config: OptimizerConfig | None = None,
        *,
        sniffer: Sniffer | None = sniff_mime_type,
        alpha_probe: AlphaProbe | None = png_has_alpha,
        orientation_reader: OrientationReader | None = read_orientation,
        editor_factory: EditorFactory | None = None,
        target_resolver: Callable[[Path], Path] = unique_webp_target,
        remove: Callable[[Path], None] = delete_file,
        quality_override: QualityOverride | None = None,
    ):
        self.upload = upload
        self.config = config or OptimizerConfig()

        if editor_factory is None:
            editor_factory = functools.partial(get_image_editor, names=self.config.editors)

        self._sniffer = sniffer
        self._alpha_probe = alpha_probe
        self._orientation_reader = orientation_reader
        self._editor_factory = editor_factory
        self._target_resolver = target_resolver
        self._remove = remove
        self._quality_override = quality_override

    def run(self) -> ConversionResult:
        """Execute the conversion. Never raises a ConversionError."""
        result = ConversionResult(upload=self.upload)
        try:
            source = self._source_path()

            classification = result.classification = self._classify(source)
            if not classification.eligible:
                raise NotEligible(classification.reason or classification.resolved_type)
            result.decision = self._decide(source, classification)
            result.upload = self._encode(source, classification, result.decision)
            result.converted = True
        except ConversionError as e:
            logger.info("Leaving %s unchanged: %s: %s", self.upload.path, type(e).__name__, e)
            result.upload = self.upload
            result.error = e
            return result

        logger.info("Converted %s -> %s (q=%d)",
                    self.upload.path, result.upload.path, result.decision.quality)
        return result

    def _source_path(self) -> Path:
        if not self.upload.path or not self.upload.type:
            raise NotEligible("upload has no path or type")
        source = Path(self.upload.path)
        if not source.is_file():
            raise NotEligible(f"{source} is not a file")
        return source

    def _classify(self, source: Path) -> Classification:
        return classify_upload(
            source,
            self.upload.type,
            self.config,
            sniffer=self._sniffer,
            alpha_probe=self._alpha_probe,
        )

    def _decide(self, source: Path, classification: Classification) -> ConversionDecision:
        rotation = orientation_rotation(
            source, classification.resolved_type, self._orientation_reader
        )
        decision = decide(classification, rotation, self.config, self._quality_override)
        if not decision.convert:
            raise NotEligible(classification.reason or "declined by policy")
        return decision

    def _encode(
        self,
        source: Path,
        classification: Classification,
        decision: ConversionDecision,
    ) -> UploadDescriptor:
        target = source if decision.in_place else self._target_resolver(source)
        saved = encode_webp(
            self._editor_factory,
            source,
            classification.resolved_type,
            target,
            decision,
            strip_metadata=self.config.strip_metadata,
        )
        return replace_original(self.upload, saved, decision, remove=self._remove)


def convert_upload(
    upload: UploadDescriptor,
    config: OptimizerConfig | None = None,
    **kwargs,
) -> UploadDescriptor:
    """Convert `upload` if possible; return the resulting (or the same) descriptor."""
    return UploadConversion(upload, config, **kwargs).run().upload
