"""
Entity decoding for text supplied by the trivia source
"""

import html
import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def decode(raw: Optional[str]) -> str:
    """Replace HTML entities (``&quot;``, ``&#039;``, ``&eacute;`` ...) with
    the characters they stand for. Markup is left as plain text."""
    if not raw:
        return ""
    return html.unescape(raw)


def normalize(raw: Optional[str]) -> str:
    """Comparison key for duplicate detection: decoded, case-folded,
    whitespace collapsed"""
    return _WHITESPACE.sub(" ", decode(raw)).strip().casefold()
