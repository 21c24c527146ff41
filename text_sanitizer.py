"""
Cleanup for AI-generated text before it reaches the page.

Two problems show up in model output: list items that arrive with their own
bullet or arrow glyphs (which we draw ourselves), and Arabic text that was
UTF-8 encoded but read back as Latin-1 somewhere upstream.
"""
from typing import Tuple

# Longest first, so a two-character arrow wins over a lone dash.
BULLET_PREFIXES: Tuple[str, ...] = tuple(sorted(
    [
        "â€¢",  # UTF-8 bullet read as cp1252
        "â\u0080¢",  # UTF-8 bullet read as Latin-1
        "•",
        "→",
        "➤",
        "➢",
        "►",
        "▶",
        "⇒",
        "->",
        "—",
        "–",
        "-",
        "*",
    ],
    key=len,
    reverse=True,
))
# Markers that also open ordinary text ("**Bold**") only count when followed by a space.
SPACED_PREFIXES = ("*",)

MOJIBAKE_MARKER = "Ã"
ARABIC_BLOCK = ("\u0600", "\u06ff")


def _has_arabic(text: str) -> bool:
    low, high = ARABIC_BLOCK
    return any(low <= ch <= high for ch in text)


def _is_marker(text: str, prefix: str) -> bool:
    if prefix not in SPACED_PREFIXES:
        return True
    rest = text[len(prefix):]
    return not rest or rest[0].isspace()


def strip_bullet_prefix(text: str) -> str:
    """Remove a leading bullet/arrow/dash token and surrounding whitespace.

    Stacked prefixes such as "- • item" are removed until none is left, so
    calling this on its own output never changes it.
    """
    if not text:
        return ""
    cleaned = text.strip()
    while cleaned:
        for prefix in BULLET_PREFIXES:
            if cleaned.startswith(prefix) and _is_marker(cleaned, prefix):
                cleaned = cleaned[len(prefix):].strip()
                break
        else:
            break
    return cleaned


def repair_mojibake(text: str) -> str:
    """Best-effort repair of UTF-8 text that was decoded as Latin-1.

    This is a heuristic, not a charset detector: text that already holds
    Arabic codepoints is trusted as-is, and only text carrying the "Ã"
    marker is re-decoded. Anything that does not round-trip cleanly is
    returned untouched.
    """
    if not text or _has_arabic(text):
        return text
    if MOJIBAKE_MARKER not in text:
        return text
    try:
        return text.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return text
