"""
Error taxonomy for the upload conversion.

Everything under ConversionError is recoverable: the upload passes through
unchanged. ActivationError is the only fatal one.
"""


class ConversionError(Exception):
    """Base exception for a conversion that did not happen."""
    pass


class NotEligible(ConversionError):
    """Raised when the upload is not a convertible image."""
    pass


class EditorUnavailable(ConversionError):
    """Raised when no image editor can open the file."""
    pass


class EncodeFailed(ConversionError):
    """Raised when the editor could not write the WebP file."""
    pass


class MetadataReadFailed(ConversionError):
    """Raised when EXIF data can't be read."""
    pass


class SniffFailed(ConversionError):
    """Raised when the content type can't be detected."""
    pass


class DeleteFailed(ConversionError):
    """Raised when the original file can't be removed."""
    pass


class ActivationError(Exception):
    """Raised when the environment cannot produce WebP output at all."""
    pass
