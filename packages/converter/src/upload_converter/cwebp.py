"""
Wrapper for the cwebp command-line tool.

Used by CwebpEditor when Pillow can't write WebP on this machine.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from upload_shared.errors import EncodeFailed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class CwebpError(EncodeFailed):
    """Raised when cwebp fails to convert an image."""

    def __init__(self, command: list[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"cwebp failed (rc={returncode}): {stderr.strip()}")


def cwebp_available() -> bool:
    return shutil.which("cwebp") is not None


def run_cwebp(args: list[str], timeout: float = DEFAULT_TIMEOUT) -> tuple[int, str, str]:
    """Run cwebp with the given arguments."""
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return 124, "", f"TimeoutExpired after {timeout}s"
    except FileNotFoundError:
        return 127, "", "cwebp not found. Install webp package."


def encode_with_cwebp(
    source: str,
    target: str,
    quality: int,
    metadata: str = "none",
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """
    Encode `source` to WebP at `target`.

    Raises:
        CwebpError: If cwebp exits non-zero or times out
    """
    cmd = ["cwebp", "-quiet", "-q", str(quality), "-metadata", metadata, source, "-o", target]

    logger.debug("Running: %s", " ".join(cmd))
    returncode, _, stderr = run_cwebp(cmd, timeout)
    if returncode != 0:
        raise CwebpError(cmd, returncode, stderr)
