from __future__ import annotations

import html
import re


def clean_text(text: str | None) -> str:
    """Clean a catalog text field (word, category, meaning).

    - Decode HTML entities (e.g. &agrave; -> à)
    - Strip HTML tags while keeping inner text
    - Normalize whitespace and newlines
    """

    if not text:
        return ""

    text = html.unescape(text)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text)

    return text.strip()
