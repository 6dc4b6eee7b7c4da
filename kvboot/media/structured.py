"""JSON and YAML codecs that flatten nested documents into dot keys."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import yaml


def iter_dot_keys(
    node: Dict[str, Any],
    prefix: str = "",
    depth: Optional[int] = None,
) -> Iterator[Tuple[str, Any]]:
    """Walk a parsed document, yielding leaves under dot-joined keys.

    Mappings nested deeper than ``depth`` levels are yielded whole as leaves.

    Args:
        node: Parsed mapping.
        prefix: Key of ``node`` itself, empty at the root.
        depth: Levels of nesting to descend into, unlimited when None.
    """
    for name, child in node.items():
        key = f"{prefix}.{name}" if prefix else str(name)
        descend = depth is None or depth > 0
        if descend and isinstance(child, dict):
            yield from iter_dot_keys(child, key, None if depth is None else depth - 1)
        else:
            yield key, child


def to_text(value: Any) -> str:
    # lists and dict leaves become compact JSON for stability
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten(data: Any, depth: Optional[int] = None) -> List[Tuple[str, str]]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the document root, got {type(data).__name__}")
    return [(k, to_text(v)) for k, v in iter_dot_keys(data, depth=depth)]


def unflatten(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    nested: Dict[str, Any] = {}
    for key, value in pairs:
        parts = key.split(".")
        node = nested
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
    return nested


class JsonMedia:
    media_type = "application/json"
    file_extensions = ("json",)

    def parse(self, text: str) -> List[Tuple[str, str]]:
        if not text.strip():
            return []
        return flatten(json.loads(text))

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        return json.dumps(dict(pairs), indent=2) + "\n"


class YamlMedia:
    media_type = "application/yaml"
    file_extensions = ("yaml", "yml")

    def parse(self, text: str) -> List[Tuple[str, str]]:
        return flatten(yaml.safe_load(text))

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        return yaml.safe_dump(unflatten(pairs), sort_keys=False)
