from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..media.base import MediaRegistry
from ..media.properties import MEDIA_TYPE as PROPERTIES_MEDIA_TYPE, format_properties
from .types import REDACTED_MESSAGE, KeyValue, ProvenanceRecord, redact_all, to_map


def format_key_values(kvs: List[KeyValue], message: str = REDACTED_MESSAGE) -> str:
    """Render key/values for display, redacted, one line per key."""
    body = format_properties(to_map(redact_all(kvs, message)).items())
    return f"KeyValues[\n{body}]\n"


@dataclass
class Config:
    key_values: List[KeyValue]
    _resolve: Optional[Callable[[], List[KeyValue]]] = None
    redacted_message: str = REDACTED_MESSAGE
    _effective: Dict[str, str] = field(default_factory=dict)
    _latest: Dict[str, KeyValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._index()

    def _index(self) -> None:
        self._effective = to_map(self.key_values)
        self._latest = {kv.key: kv for kv in self.key_values}

    def values(self) -> Dict[str, str]:
        return dict(self._effective)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._effective.get(key, default)

    def key_value(self, key: str) -> Optional[KeyValue]:
        return self._latest.get(key)

    def provenance(self, key: str) -> Optional[ProvenanceRecord]:
        kv = self._latest.get(key)
        if kv is None:
            return None
        src = kv.source.redact(self.redacted_message)
        return ProvenanceRecord(
            key=kv.key,
            original_key=kv.original_key,
            source_uri=src.uri,
            index=src.index,
            chain=[] if src.reference is None else src.reference.chain(),
        )

    def describe(self, key: str) -> str:
        """Describe where the value of ``key`` came from.

        Raises:
            KeyError: If the key was not resolved.
        """
        kv = self._latest.get(key)
        if kv is None:
            raise KeyError(key)
        src = kv.source.redact(self.redacted_message)
        lines = [f"key='{kv.key}' in uri='{src.uri}' index={src.index}"]
        if kv.key != kv.original_key:
            lines[0] += f" originalKey='{kv.original_key}'"
        if src.reference is not None:
            for ref in src.reference.chain():
                lines.append(f"\t<-- specified with key: '{ref.key}' in uri='{ref.uri}'")
        return "\n".join(lines)

    def redacted(self) -> List[KeyValue]:
        return redact_all(self.key_values, self.redacted_message)

    def format(
        self,
        media_type: str = PROPERTIES_MEDIA_TYPE,
        redact: bool = True,
        media: Optional[MediaRegistry] = None,
    ) -> str:
        registry = media if media is not None else MediaRegistry()
        kvs = self.redacted() if redact else self.key_values
        return registry.format(media_type, to_map(kvs).items())

    def reload(self) -> None:
        if self._resolve is None:
            raise ValueError("Config was not created by an Environment and cannot reload")
        self.key_values = self._resolve()
        self._index()

    def __str__(self) -> str:
        return format_key_values(self.key_values, self.redacted_message)
