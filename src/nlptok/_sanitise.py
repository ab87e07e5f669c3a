"""
Utilities for converting token text to displayable strings.
"""

import unicodedata


def _escape_ctrl_chars(s: str) -> str:
    """Replace all Unicode control characters with their escape sequences."""
    cleaned = []
    for c in s:
        # control category codes vary: Cc, Cf, Cn etc.
        # so check via first character
        if unicodedata.category(c)[0] != "C":
            cleaned.append(c)
        else:
            cleaned.append(f"\\u{ord(c):04x}")
    return "".join(cleaned)


def render_token(text: str) -> str:
    """Escape control characters and whitespace-only tokens for listings and logs."""
    if text and text.isspace():
        return "".join(f"\\u{ord(c):04x}" for c in text)
    return _escape_ctrl_chars(text)
