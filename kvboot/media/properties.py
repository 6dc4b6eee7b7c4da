"""Java-style ``.properties`` codec."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Tuple

MEDIA_TYPE = "text/x-java-properties"

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_NEWLINE = re.compile(r"\r\n|\r|\n")


def _logical_lines(text: str) -> Iterator[str]:
    pending = None
    for natural in _NEWLINE.split(text):
        line = natural.lstrip(_WHITESPACE)
        if pending is None:
            if not line or line[0] in "#!":
                continue
            current = line
        else:
            current = pending + line
        trailing = len(current) - len(current.rstrip("\\"))
        if trailing % 2 == 1:
            pending = current[:-1]
            continue
        pending = None
        yield current
    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text
    out: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u" and i + 6 <= len(text):
            try:
                out.append(chr(int(text[i + 2:i + 6], 16)))
            except ValueError as e:
                raise ValueError(f"Malformed \\uxxxx encoding: {text[i:i + 6]}") from e
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split(line: str) -> Tuple[str, str]:
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    while i < len(line) and line[i] in _WHITESPACE:
        i += 1
    if i < len(line) and line[i] in _SEPARATORS:
        i += 1
    while i < len(line) and line[i] in _WHITESPACE:
        i += 1
    return _unescape(key), _unescape(line[i:])


def parse_properties(text: str) -> List[Tuple[str, str]]:
    """Parse properties text, keeping duplicate keys in document order."""
    return [_split(line) for line in _logical_lines(text)]


def _escape(text: str, is_key: bool) -> str:
    out: List[str] = []
    for i, ch in enumerate(text):
        if ch == " ":
            out.append("\\ " if i == 0 or is_key else " ")
        elif ch == "\\":
            out.append("\\\\")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\f":
            out.append("\\f")
        elif ch in "=:#!":
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def format_properties(pairs: Iterable[Tuple[str, str]]) -> str:
    return "".join(f"{_escape(k, True)}={_escape(v, False)}\n" for k, v in pairs)


class PropertiesMedia:
    media_type = MEDIA_TYPE
    file_extensions = ("properties",)

    def parse(self, text: str) -> List[Tuple[str, str]]:
        return parse_properties(text)

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        return format_properties(pairs)
