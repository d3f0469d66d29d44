"""Deterministic display colors for tags, clusters and synthetic groups.

Colors come from a 31-multiplier string hash folded to signed 32-bit, so the
same tag renders with the same color on every run and in every client that
implements the same hash.
"""

from __future__ import annotations

TAG_COLORS: list[str] = [
    "#3b82f6", "#10b981", "#f59e0b", "#ef4444",
    "#8b5cf6", "#ec4899", "#14b8a6", "#f97316",
    "#06b6d4", "#84cc16", "#a78bfa", "#fb923c",
]

ROOT_COLOR = "#3b82f6"
OTHER_COLOR = "#6b7280"  # "other" / "related" buckets
ORPHAN_COLOR = "#9ca3af"  # "Other Recommendations"


def _utf16_units(value: str) -> list[int]:
    """First UTF-16 code unit of each code point."""
    units: list[int] = []
    for ch in value:
        code = ord(ch)
        if code > 0xFFFF:
            code = 0xD800 + ((code - 0x10000) >> 10)
        units.append(code)
    return units


def string_hash(value: str) -> int:
    """Signed 32-bit ``h = h * 31 + c`` hash."""
    h = 0
    for unit in _utf16_units(value):
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def hash_color(value: str) -> str:
    return TAG_COLORS[abs(string_hash(value)) % len(TAG_COLORS)]
