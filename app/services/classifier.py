"""Map a declared ``Content-Type`` to the analyzer that should handle it."""

from typing import Tuple

from app.models.analysis import ContentKind

# Checked in order; the first substring found wins.
_RULES: Tuple[Tuple[str, ContentKind], ...] = (
    ("text/html", "html"),
    ("application/json", "json"),
    ("text/css", "css"),
    ("javascript", "javascript"),
)


def classify(content_type: str) -> ContentKind:
    """Return the content kind for *content_type*, falling back to ``"text"``."""
    lowered = (content_type or "").lower()
    for needle, kind in _RULES:
        if needle in lowered:
            return kind
    return "text"
