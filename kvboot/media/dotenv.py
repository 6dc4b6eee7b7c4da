"""``.env`` codec."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

_LINE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=\s*(.*)$")


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    """Parse a single line from a .env file.

    Args:
        line: Line to parse

    Returns:
        Tuple of (key, value) or None if line should be ignored
    """
    line = line.strip()

    # Skip empty lines and comments
    if not line or line.startswith("#"):
        return None

    match = _LINE.match(line)
    if not match:
        return None

    key, value = match.groups()

    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
        value = (
            value.replace('\\"', '"')
            .replace("\\n", "\n")
            .replace("\\r", "\r")
            .replace("\\t", "\t")
        )
    elif len(value) >= 2 and value.startswith("'") and value.endswith("'"):
        value = value[1:-1]
    else:
        # trailing comment on an unquoted value
        value = value.split(" #", 1)[0].rstrip()

    return key, value


def _format_value(value: str) -> str:
    needs_quotes = (
        " " in value
        or "\n" in value
        or "\t" in value
        or value.startswith("#")
    )
    if not needs_quotes:
        return value
    escaped = (
        value.replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


class DotEnvMedia:
    media_type = "text/x-dotenv"
    file_extensions = ("env",)

    def parse(self, text: str) -> List[Tuple[str, str]]:
        pairs: List[Tuple[str, str]] = []
        for line in text.splitlines():
            parsed = _parse_line(line)
            if parsed:
                pairs.append(parsed)
        return pairs

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        return "".join(f"{k}={_format_value(v)}\n" for k, v in pairs)
