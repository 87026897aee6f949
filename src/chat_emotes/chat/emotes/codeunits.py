"""UTF-16 code unit helpers.

Offsets handed to the renderer are UTF-16 code units, the convention of
the chat transport. Python strings index by code point, so characters
outside the Basic Multilingual Plane count twice here.
"""

_BMP_MAX = 0xFFFF


def is_supplementary(ch: str) -> bool:
    """Return True if the character needs a surrogate pair in UTF-16."""
    return ord(ch) > _BMP_MAX


def utf16_len(text: str) -> int:
    """Length of text in UTF-16 code units."""
    return len(text) + sum(1 for ch in text if is_supplementary(ch))


def supplementary_positions(text: str) -> list[int]:
    """Code point indices of all supplementary characters in text."""
    return [i for i, ch in enumerate(text) if is_supplementary(ch)]
