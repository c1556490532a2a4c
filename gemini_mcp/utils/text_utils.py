from __future__ import annotations

import re
from collections.abc import Iterable

from ..shard import constants as C


def _fence_pattern(languages: Iterable[str]) -> re.Pattern[str]:
    tags = "|".join(re.escape(lang) for lang in languages)
    return re.compile(rf"^```(?:{tags})?", re.IGNORECASE)


_OPEN_FENCE = _fence_pattern(C.FENCE_LANGUAGES)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences a model wrapped around structured output.

    Handles ```svg, ```xml, ```json and bare ``` openers plus a trailing ```.
    Repeats until nothing changes, so the result never starts or ends with a
    fence and calling it again is a no-op.
    """
    current = text.strip()
    while True:
        stripped = _OPEN_FENCE.sub("", current, count=1)
        if stripped.endswith("```"):
            stripped = stripped[:-3]
        stripped = stripped.strip()
        if stripped == current:
            return stripped
        current = stripped


def append_footer(text: str, footer: str | None) -> str:
    """Append an informational footer separated by a blank line."""
    if not footer:
        return text
    return f"{text}\n\n{footer}" if text else footer


__all__ = ["strip_code_fences", "append_footer"]
