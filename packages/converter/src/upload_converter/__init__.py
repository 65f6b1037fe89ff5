"""
WebP Conversion Engine for uploads.

This package is the per-upload conversion logic: classification, orientation,
encode policy and the image editors that write the WebP file.
It is used by the optimizer app.

This package has no host dependencies. It's pure file and image processing.

"""

from pillow_heif import register_heif_opener

from .analysis import classify_upload, is_animated_gif, png_has_alpha, sniff_mime_type
from .convert import ConversionResult, UploadConversion, convert_upload
from .cwebp import CwebpError, cwebp_available, run_cwebp
from .editors import (
    CwebpEditor,
    ImageEditor,
    PillowEditor,
    editor_supports,
    get_image_editor,
)
from .encoder import encode_webp, replace_original
from .orientation import orientation_rotation, read_orientation, rotation_for_orientation
from .policy import choose_quality, clamp_quality, decide

# HEIC/HEIF uploads are decoded through Pillow.
register_heif_opener()

__all__ = [
    "sniff_mime_type",
    "is_animated_gif",
    "png_has_alpha",
    "classify_upload",
    "read_orientation",
    "rotation_for_orientation",
    "orientation_rotation",
    "choose_quality",
    "clamp_quality",
    "decide",
    "ImageEditor",
    "PillowEditor",
    "CwebpEditor",
    "get_image_editor",
    "editor_supports",
    "CwebpError",
    "run_cwebp",
    "cwebp_available",
    "encode_webp",
    "replace_original",
    "UploadConversion",
    "ConversionResult",
    "convert_upload",
]
