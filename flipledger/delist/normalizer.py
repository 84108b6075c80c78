"""SKU and size canonicalization for cross-listing matches.

Both functions are lossy on purpose: they exist to make real-world
variants compare equal, not to produce a display value.
"""

from __future__ import annotations

import re
from typing import Optional

_NON_SKU_CHARS = re.compile(r"[^A-Z0-9]")
_GENDER_PREFIX = re.compile(r"^[WM]\s*", re.IGNORECASE)
# "10 / W 11.5" style alternate-gender sizing
_ALT_GENDER_SUFFIX = re.compile(r"\s*/\s*[WM]\s*[\d.]+", re.IGNORECASE)
_UNIT_SUFFIX = re.compile(r"\s*(US|UK|EU|CM)$", re.IGNORECASE)
_NON_SIZE_CHARS = re.compile(r"[^A-Z0-9.]")


def normalize_sku(sku: Optional[str]) -> str:
    """Uppercase and drop everything outside A-Z0-9 ("dh-6927 111" -> "DH6927111")."""
    return _NON_SKU_CHARS.sub("", (sku or "").upper())


def normalize_size(size: Optional[str]) -> str:
    """Reduce a size label to its bare value.

    Steps, in order: uppercase and trim, drop a leading W/M gender prefix,
    drop a trailing "/ W <n>" alternate size, drop a trailing US/UK/EU/CM
    unit, then keep only A-Z, 0-9 and dots.

        >>> normalize_size("W 10")
        '10'
        >>> normalize_size("10 US")
        '10'
        >>> normalize_size("M 9 / W 10.5")
        '9'
    """
    if not size:
        return ""
    normalized = size.upper().strip()
    normalized = _GENDER_PREFIX.sub("", normalized)
    normalized = _ALT_GENDER_SUFFIX.sub("", normalized)
    normalized = _UNIT_SUFFIX.sub("", normalized)
    return _NON_SIZE_CHARS.sub("", normalized)
