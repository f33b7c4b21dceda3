"""Cache key generation — content-addressed image hashes."""

from __future__ import annotations

import hashlib

HASH_DIGEST_BYTES = 21
HASH_LENGTH = HASH_DIGEST_BYTES * 2


def hash_image(image_bytes: bytes) -> str:
    """Hash image bytes for cache key use.

    SHAKE-256 with a 21-byte output, rendered as 42 hex characters. Only
    the content matters, so the same picture under two filenames shares
    one set of variants.
    """
    return hashlib.shake_256(image_bytes).hexdigest(HASH_DIGEST_BYTES)


def hash_from_filename(file_name: str) -> str:
    """Return the hash portion of a variant file name (text before the first dot)."""
    return file_name.split(".", 1)[0]
