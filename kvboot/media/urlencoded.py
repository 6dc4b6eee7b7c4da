from __future__ import annotations

from typing import Iterable, List, Tuple
from urllib.parse import unquote_plus, urlencode

MEDIA_TYPE = "application/x-www-form-urlencoded"


def parse_query(text: str) -> List[Tuple[str, str]]:
    """Parse ``a=1&b=2``; parameters with an empty name are skipped."""
    pairs: List[Tuple[str, str]] = []
    for part in text.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        key = unquote_plus(key)
        if not key:
            continue
        pairs.append((key, unquote_plus(value)))
    return pairs


class UrlEncodedMedia:
    media_type = MEDIA_TYPE
    file_extensions = ("urlencoded",)

    def parse(self, text: str) -> List[Tuple[str, str]]:
        return parse_query(text.strip())

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        return urlencode(list(pairs))
