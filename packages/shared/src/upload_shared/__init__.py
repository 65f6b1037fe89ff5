"""
Shared types and helpers for the WebP upload filter.

The package is a dependency of both the converter and the optimizer app:
- Converter uses it for the data model, errors and file helpers
- Optimizer uses it for the upload descriptor and configuration
"""

from .config import OptimizerConfig
from .errors import (
    ActivationError,
    ConversionError,
    DeleteFailed,
    EditorUnavailable,
    EncodeFailed,
    MetadataReadFailed,
    NotEligible,
    SniffFailed,
)
from .files import (
    WEBP_EXT,
    delete_file,
    has_webp_ext,
    replace_url_basename,
    unique_filename,
    unique_webp_target,
)
from .types import (
    CONVERTIBLE_MIME_TYPES,
    GIF_MIME,
    HEIC_MIME,
    HEIF_MIME,
    JPEG_MIME,
    PNG_MIME,
    WEBP_MIME,
    Classification,
    ConversionDecision,
    OutputStrategy,
    Rotation,
    UploadDescriptor,
)

__all__ = [
    # Types
    "CONVERTIBLE_MIME_TYPES",
    "JPEG_MIME",
    "PNG_MIME",
    "GIF_MIME",
    "HEIC_MIME",
    "HEIF_MIME",
    "WEBP_MIME",
    "OutputStrategy",
    "Rotation",
    "UploadDescriptor",
    "Classification",
    "ConversionDecision",
    # Config
    "OptimizerConfig",
    # Errors
    "ConversionError",
    "NotEligible",
    "EditorUnavailable",
    "EncodeFailed",
    "MetadataReadFailed",
    "SniffFailed",
    "DeleteFailed",
    "ActivationError",
    # Files
    "WEBP_EXT",
    "has_webp_ext",
    "unique_filename",
    "unique_webp_target",
    "delete_file",
    "replace_url_basename",
]
