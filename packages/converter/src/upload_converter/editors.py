"""
Image editor sessions used to produce the WebP file.

An editor is opened on one source file and saved once. Besides `save`, every
operation is an optional capability: callers probe for the method and
treat a missing one as a no-op.

    set_quality(quality)   encode quality 0-100
    rotate(degrees)        counter-clockwise rotation baked into the pixels
    strip_meta()           drop EXIF/ICC from the output
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable

from PIL import ExifTags, Image, features

from upload_shared.errors import EditorUnavailable, EncodeFailed
from upload_shared.types import JPEG_MIME, PNG_MIME, WEBP_MIME

from .cwebp import DEFAULT_TIMEOUT, cwebp_available, encode_with_cwebp

logger = logging.getLogger(__name__)

OPTIONAL_CAPABILITIES = ("set_quality", "rotate", "strip_meta")
DEFAULT_QUALITY = 82

_TRANSPOSE = {
    90: Image.Transpose.ROTATE_90,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_270,
}


def _temp_target(target: Path) -> Path:
    """Scratch file next to `target`, moved over it once the encode succeeded."""
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{target.stem}-", suffix=".tmp", dir=target.parent)
    except OSError as e:
        raise EncodeFailed(f"Can't write to {target.parent}: {e}") from e
    os.close(fd)
    return Path(tmp)


class ImageEditor:
    """Base editor session. Subclasses add whichever optional capabilities they have."""

    name = "base"

    def __init__(self, path: Path, mime_type: str | None = None):
        self.path = Path(path)
        self.mime_type = mime_type

    @classmethod
    def test(cls) -> bool:
        """True if this editor can write WebP in the current environment."""
        return False

    @classmethod
    def supports_mime(cls, mime_type: str | None) -> bool:
        return True

    def save(self, target: Path, mime_type: str) -> Path:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "ImageEditor":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _check_output_mime(self, mime_type: str) -> None:
        if mime_type != WEBP_MIME:
            raise EncodeFailed(f"{self.name} editor only writes {WEBP_MIME}, not {mime_type}")


class PillowEditor(ImageEditor):
    """Decodes the whole image with Pillow and encodes it with Pillow's WebP plugin."""

    name = "pillow"

    def __init__(self, path: Path, mime_type: str | None = None):
        super().__init__(path, mime_type)
        self._quality = DEFAULT_QUALITY
        try:
            self._image = Image.open(self.path)
            self._image.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            self.close()
            raise EditorUnavailable(f"Pillow can't open {self.path.name}: {e}") from e

        self._exif: Image.Exif | None = self._image.getexif()
        self._icc: bytes | None = self._image.info.get("icc_profile")

    @classmethod
    def test(cls) -> bool:
        return bool(features.check("webp"))

    def set_quality(self, quality: int) -> None:
        self._quality = max(0, min(100, int(quality)))

    def rotate(self, degrees: int) -> None:
        transpose = _TRANSPOSE.get(degrees % 360)
        if transpose is None:
            rotated = self._image.rotate(degrees, expand=True)
        else:
            rotated = self._image.transpose(transpose)
        self._image.close()
        self._image = rotated

        # Pixels are upright now; a kept Orientation tag would rotate them again.
        if self._exif and ExifTags.Base.Orientation in self._exif:
            self._exif[ExifTags.Base.Orientation] = 1

    def strip_meta(self) -> None:
        self._exif = None
        self._icc = None

    def save(self, target: Path, mime_type: str) -> Path:
        self._check_output_mime(mime_type)
        target = Path(target)

        params: dict[str, Any] = {"quality": self._quality, "method": 4}
        if self._exif:
            params["exif"] = self._exif.tobytes()
        if self._icc:
            params["icc_profile"] = self._icc

        tmp = _temp_target(target)
        try:
            image = self._image
            # A tRNS colour key on an RGB image only survives as real alpha.
            if image.mode not in ("RGB", "RGBA") or "transparency" in image.info:
                image = image.convert("RGBA" if self._has_transparency(image) else "RGB")
            image.save(tmp, "WEBP", **params)
            os.replace(tmp, target)
        except (OSError, ValueError) as e:
            raise EncodeFailed(f"Pillow failed to write {target.name}: {e}") from e
        finally:
            tmp.unlink(missing_ok=True)

        logger.debug("Pillow wrote %s (q=%d)", target, self._quality)
        return target

    def close(self) -> None:
        image = getattr(self, "_image", None)
        if image is not None:
            image.close()

    @staticmethod
    def _has_transparency(image: Image.Image) -> bool:
        return image.mode in ("LA", "PA", "La", "RGBa") or "transparency" in image.info


class CwebpEditor(ImageEditor):
    """
    Runs the cwebp binary on the source file.

    cwebp reads the file itself, so there's no rotate capability.
    """

    name = "cwebp"
    input_mime_types = frozenset({JPEG_MIME, PNG_MIME, WEBP_MIME, "image/tiff"})

    def __init__(
        self,
        path: Path,
        mime_type: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(path, mime_type)
        if not self.path.is_file():
            raise EditorUnavailable(f"Not a file: {self.path}")
        if not self.supports_mime(mime_type):
            raise EditorUnavailable(f"cwebp can't read {mime_type}")
        self._quality = DEFAULT_QUALITY
        self._metadata = "all"
        self._timeout = timeout

    @classmethod
    def test(cls) -> bool:
        return cwebp_available()

    @classmethod
    def supports_mime(cls, mime_type: str | None) -> bool:
        return mime_type in cls.input_mime_types

    def set_quality(self, quality: int) -> None:
        self._quality = max(0, min(100, int(quality)))

    def strip_meta(self) -> None:
        self._metadata = "none"

    def save(self, target: Path, mime_type: str) -> Path:
        self._check_output_mime(mime_type)
        target = Path(target)

        tmp = _temp_target(target)
        try:
            encode_with_cwebp(
                str(self.path), str(tmp), self._quality,
                metadata=self._metadata, timeout=self._timeout,
            )
            os.replace(tmp, target)
        except OSError as e:
            raise EncodeFailed(f"Failed to move cwebp output to {target}: {e}") from e
        finally:
            tmp.unlink(missing_ok=True)

        return target


EDITORS: dict[str, type[ImageEditor]] = {
    PillowEditor.name: PillowEditor,
    CwebpEditor.name: CwebpEditor,
}

EditorFactory = Callable[[Path, str], ImageEditor]


def get_image_editor(
    path: Path,
    mime_type: str,
    names: tuple[str, ...] = ("pillow", "cwebp"),
) -> ImageEditor:
    """
    Open the first configured editor that can write WebP and read `path`.

    Raises EditorUnavailable if none can.
    """
    reasons: list[str] = []
    for name in names:
        editor_cls = EDITORS.get(name)
        if editor_cls is None:
            reasons.append(f"{name}: unknown editor")
            continue
        if not editor_cls.test():
            reasons.append(f"{name}: no WebP support")
            continue
        if not editor_cls.supports_mime(mime_type):
            reasons.append(f"{name}: can't read {mime_type}")
            continue
        try:
            return editor_cls(path, mime_type)
        except EditorUnavailable as e:
            reasons.append(f"{name}: {e}")

    raise EditorUnavailable(f"No image editor for {Path(path).name} ({'; '.join(reasons)})")


def configured_editors(names: tuple[str, ...]) -> list[type[ImageEditor]]:
    return [EDITORS[name] for name in names if name in EDITORS]


def editor_supports(mime_type: str, names: tuple[str, ...] = ("pillow", "cwebp")) -> bool:
    """True if any configured editor can write `mime_type` here."""
    if mime_type != WEBP_MIME:
        return False
    return any(editor_cls.test() for editor_cls in configured_editors(names))
