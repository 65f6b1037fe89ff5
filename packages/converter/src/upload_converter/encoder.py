"""
WebP encoding through an image editor, and swapping the upload over to the result.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable

from upload_shared.errors import DeleteFailed, EncodeFailed
from upload_shared.files import delete_file, replace_url_basename
from upload_shared.types import WEBP_MIME, ConversionDecision, UploadDescriptor

from .editors import OPTIONAL_CAPABILITIES, EditorFactory

logger = logging.getLogger(__name__)


def apply_capability(editor: Any, capability: str, *args: Any) -> bool:
    """Call an optional editor operation if the editor has it."""
    method = getattr(editor, capability, None)
    if not callable(method):
        logger.debug("Editor %s has no %s, skipping", type(editor).__name__, capability)
        return False
    method(*args)
    return True


def encode_webp(
    editor_factory: EditorFactory,
    source: Path,
    source_type: str,
    target: Path,
    decision: ConversionDecision,
    strip_metadata: bool = True,
) -> Path:
    """
    Re-encode `source` as WebP at `target`.

    Rotation is applied before anything else so it ends up in the pixels.
    An editor that can't rotate keeps the metadata, Orientation tag included.

    Raises:
        EditorUnavailable: If no editor can open the source
        EncodeFailed: If the save fails or leaves no file behind
    """
    with editor_factory(source, source_type) as editor:
        logger.debug(
            "Editor %s capabilities: %s", type(editor).__name__,
            [c for c in OPTIONAL_CAPABILITIES if callable(getattr(editor, c, None))],
        )
        unrotated = bool(decision.rotation) and not apply_capability(
            editor, "rotate", decision.rotation
        )
        apply_capability(editor, "set_quality", decision.quality)
        if strip_metadata and unrotated:
            # The Orientation tag is all that keeps this one upright.
            logger.debug("Keeping metadata of %s, editor could not rotate it", source.name)
        elif strip_metadata:
            apply_capability(editor, "strip_meta")

        saved = editor.save(target, WEBP_MIME)

    if not saved:
        raise EncodeFailed(f"Editor reported no output for {target.name}")
    saved = Path(saved)
    if not saved.is_file():
        raise EncodeFailed(f"Encoded file is missing: {saved}")
    return saved


def replace_original(
    upload: UploadDescriptor,
    saved: Path,
    decision: ConversionDecision,
    remove: Callable[[Path], None] = delete_file,
) -> UploadDescriptor:
    """Point a copy of `upload` at the WebP file, deleting the original if it was a different file."""
    if decision.in_place:
        # Same filename, so the URL is already right.
        return replace(upload, type=WEBP_MIME)

    original = Path(upload.path)
    try:
        remove(original)
    except DeleteFailed as e:
        logger.warning("Keeping original next to its WebP version: %s", e)

    url = upload.url
    if url:
        url = replace_url_basename(url, saved.name)

    return replace(upload, path=str(saved), type=WEBP_MIME, url=url)
