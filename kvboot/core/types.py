"""Type definitions for key/values and their provenance."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

REDACTED_MESSAGE = "REDACTED"
NULL_URI = "null:///"


class KeyValueFlag(Enum):
    """Flags carried by a single key/value."""

    NO_INTERPOLATION = "NO_INTERPOLATION"
    SENSITIVE = "SENSITIVE"


@dataclass(frozen=True)
class KeyValueReference:
    """Snapshot of the key/value that declared a resource.

    Only the diagnostic bits of the declaring key/value are kept, so a
    load chain never holds on to the key/values themselves.

    Attributes:
        key: Key of the declaring key/value (e.g. ``_load_db``).
        uri: URI of the resource the declaring key/value came from.
        sensitive: Whether the declaring key/value was sensitive.
        parent: Reference of the resource the declaring key/value came from.
    """

    key: str
    uri: str
    sensitive: bool = False
    parent: Optional["KeyValueReference"] = None

    def chain(self) -> List["KeyValueReference"]:
        """Walk the references from this one to the root."""
        refs: List[KeyValueReference] = []
        ref: Optional[KeyValueReference] = self
        while ref is not None:
            refs.append(ref)
            ref = ref.parent
        return refs

    def __str__(self) -> str:
        return f"[key='{self.key}', in='{self.uri}']"


@dataclass(frozen=True)
class Source:
    """Where a key/value was loaded from.

    Attributes:
        uri: URI of the resource, ``null:///`` for in-memory values.
        reference: Declaring key/value of the resource, if any.
        index: 1-based position within the resource (0 when in-memory).
    """

    uri: str = NULL_URI
    reference: Optional[KeyValueReference] = None
    index: int = 0

    def is_null(self) -> bool:
        return self.uri == NULL_URI

    def redact(self, message: str = REDACTED_MESSAGE) -> "Source":
        if self.reference is not None and self.reference.sensitive:
            return replace(self, uri=message)
        return self

    def __str__(self) -> str:
        src = self.redact()
        if src.is_null():
            return "Source[empty]"
        ref = "" if src.reference is None else f", reference={src.reference}"
        return f"Source[uri={src.uri}{ref}, index={src.index}]"


EMPTY_SOURCE = Source()


@dataclass(frozen=True)
class Meta:
    original_key: str
    raw: str
    source: Source = EMPTY_SOURCE
    flags: FrozenSet[KeyValueFlag] = frozenset()


@dataclass(frozen=True, repr=False)
class KeyValue:
    """An immutable key/value with its raw value and provenance.

    ``expanded`` is the latest interpolation of ``meta.raw``. Every
    transformation returns a new instance.

    Attributes:
        key: Current key (may differ from the original after a rename).
        expanded: Interpolated value.
        meta: Original key, raw value, source and flags.
    """

    key: str
    expanded: str
    meta: Meta

    @classmethod
    def of(
        cls,
        key: str,
        raw: str,
        source: Source = EMPTY_SOURCE,
        flags: Iterable[KeyValueFlag] = (),
    ) -> "KeyValue":
        """Create a key/value whose expanded value is its raw value.

        Args:
            key: The key.
            raw: The raw, uninterpolated value.
            source: Provenance of the value.
            flags: Key/value flags.

        Returns:
            A new KeyValue.
        """
        return cls(key, raw, Meta(key, raw, source, frozenset(flags)))

    @property
    def value(self) -> str:
        return self.expanded

    @property
    def raw(self) -> str:
        return self.meta.raw

    @property
    def source(self) -> Source:
        return self.meta.source

    @property
    def flags(self) -> FrozenSet[KeyValueFlag]:
        return self.meta.flags

    @property
    def original_key(self) -> str:
        return self.meta.original_key

    def is_sensitive(self) -> bool:
        return KeyValueFlag.SENSITIVE in self.meta.flags

    def is_no_interpolation(self) -> bool:
        return KeyValueFlag.NO_INTERPOLATION in self.meta.flags

    def with_key(self, key: str) -> "KeyValue":
        if key == self.key:
            return self
        return replace(self, key=key)

    def with_expanded(self, expanded: Optional[str]) -> "KeyValue":
        """Return a copy with a new expanded value.

        A ``None`` value or a no-interpolation key/value keeps the current
        expanded value.
        """
        if expanded is None or self.is_no_interpolation() or expanded == self.expanded:
            return self
        return replace(self, expanded=expanded)

    def with_raw(self, raw: str) -> "KeyValue":
        """Return a copy whose raw and expanded values are both ``raw``."""
        return KeyValue(self.key, raw, replace(self.meta, raw=raw))

    def with_source(self, source: Source) -> "KeyValue":
        return replace(self, meta=replace(self.meta, source=source))

    def add_flags(self, flags: Iterable[KeyValueFlag]) -> "KeyValue":
        merged = self.meta.flags | frozenset(flags)
        if merged == self.meta.flags:
            return self
        kv = replace(self, meta=replace(self.meta, flags=merged))
        if KeyValueFlag.NO_INTERPOLATION in merged:
            kv = replace(kv, expanded=kv.meta.raw)
        return kv

    def redact(self, message: str = REDACTED_MESSAGE) -> "KeyValue":
        """Replace the value of a sensitive key/value with ``message``.

        The returned key/value is no longer flagged sensitive.
        """
        if not self.is_sensitive():
            return self
        flags = self.meta.flags - {KeyValueFlag.SENSITIVE}
        return KeyValue(self.key, message, replace(self.meta, raw=message, flags=flags))

    def to_reference(self) -> KeyValueReference:
        src = self.meta.source
        return KeyValueReference(
            key=self.key,
            uri=src.uri,
            sensitive=self.is_sensitive(),
            parent=src.reference,
        )

    def __str__(self) -> str:
        kv = self.redact()
        original = "" if kv.key == kv.original_key else f", originalKey='{kv.original_key}'"
        flags = ""
        if kv.flags:
            names = sorted(f.value for f in kv.flags)
            flags = f", flags=[{', '.join(names)}]"
        return (
            f"KeyValue[key='{kv.key}'{original}, raw='{kv.raw}', "
            f"expanded='{kv.expanded}', source={kv.source}{flags}]"
        )

    __repr__ = __str__


def to_map(kvs: Iterable[KeyValue]) -> Dict[str, str]:
    """Collapse key/values into a dict of expanded values.

    Later values for a key win; the key keeps its first position.
    """
    result: Dict[str, str] = {}
    for kv in kvs:
        result[kv.key] = kv.expanded
    return result


def redact_all(kvs: Iterable[KeyValue], message: str = REDACTED_MESSAGE) -> List[KeyValue]:
    return [kv.redact(message) for kv in kvs]


@dataclass(frozen=True)
class ProvenanceRecord:
    """Record tracking where a resolved value came from.

    Attributes:
        key: Resolved key.
        original_key: Key as it appeared in the resource.
        source_uri: URI of the resource the value came from.
        index: Position of the value within that resource.
        chain: Declaring references, nearest first.
    """

    key: str
    original_key: str
    source_uri: str
    index: int
    chain: List[KeyValueReference] = field(default_factory=list)
