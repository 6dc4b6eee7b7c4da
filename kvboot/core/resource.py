"""Resources: named, loadable sets of key/values."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from . import flags as load_flags
from .errors import ResourceDeclarationError
from .flags import LoadFlag
from .types import NULL_URI, REDACTED_MESSAGE, KeyValue, KeyValueReference, Source

RESOURCE_NAME_PATTERN = re.compile(r"[a-zA-Z0-9]+")


def validate_name(name: Optional[str]) -> str:
    """Check that a resource name is alphanumeric.

    Raises:
        ResourceDeclarationError: If the name is empty or has other characters.
    """
    if name is None or not RESOURCE_NAME_PATTERN.fullmatch(name):
        raise ResourceDeclarationError(
            "Invalid source name: must contain only alphanumeric characters "
            f"(no underscores) and not be null. input: {name}"
        )
    return name


def name_from_uri(uri: str) -> str:
    return base64.b32encode(uri.encode("utf-8")).decode("ascii").rstrip("=")


class SourceKind(Enum):
    """Kinds of entries the resolver can be seeded with."""

    RESOURCE = "resource"
    KEY_VALUES = "key_values"


@dataclass(frozen=True)
class Filter:
    """A filter declared on a resource.

    Attributes:
        filter_id: Id of the filter implementation (``grep``, ``sed``, ``join``).
        expression: Text interpreted by that filter.
        name: Discriminator so one resource can declare the same filter twice.
    """

    filter_id: str
    expression: str
    name: str = ""

    @staticmethod
    def from_dict(d: Mapping[str, str]) -> "Filter":
        filter_id = d.get("id") or d.get("filter_id")
        if not filter_id:
            raise ResourceDeclarationError(f"Filter needs an id. input: {dict(d)}")
        return Filter(str(filter_id), str(d.get("expression", "")), str(d.get("name", "") or ""))


@dataclass(frozen=True)
class Resource:
    """A named resource to load.

    Attributes:
        uri: Where to load the key/values from.
        name: Alphanumeric name, unique within one batch of declarations.
        load_flags: Behavior modifiers.
        parameters: Loader parameters.
        filters: Filters applied to the loaded key/values, in order.
        media_type: Explicit media type, otherwise derived from the URI.
        reference: Declaring key/value, None for seeds.
    """

    uri: str
    name: str
    load_flags: FrozenSet[LoadFlag] = frozenset()
    parameters: Dict[str, str] = field(default_factory=dict, hash=False)
    filters: Tuple[Filter, ...] = ()
    media_type: Optional[str] = None
    reference: Optional[KeyValueReference] = None

    kind = SourceKind.RESOURCE

    def __post_init__(self) -> None:
        validate_name(self.name)
        object.__setattr__(self, "load_flags", frozenset(self.load_flags))
        object.__setattr__(self, "parameters", dict(self.parameters))
        object.__setattr__(self, "filters", tuple(self.filters))

    def has_flag(self, flag: LoadFlag) -> bool:
        return flag in self.load_flags

    def with_(self, **changes) -> "Resource":
        return replace(self, **changes)

    def is_redacted(self) -> bool:
        return self.reference is not None and self.reference.sensitive

    def display_uri(self) -> str:
        return REDACTED_MESSAGE if self.is_redacted() else self.uri

    def description(self) -> str:
        text = f"uri='{self.display_uri()}'"
        if self.load_flags:
            names = ", ".join(f.value for f in load_flags.ordered(self.load_flags))
            text += f" flags=[{names}]"
        return text

    def describe(self, include_reference: bool = False) -> str:
        """Describe the resource for log messages.

        Args:
            include_reference: Append the key that declared the resource.
        """
        text = self.description()
        if include_reference and self.reference is not None:
            text += f" specified with key: '{self.reference.key}' in uri='{self.reference.uri}'"
        return text

    def describe_chain(self) -> str:
        """Describe the resource and every declaring key up to the seed."""
        lines = [self.description()]
        if self.reference is not None:
            for ref in self.reference.chain():
                lines.append(f"\t<-- specified with key: '{ref.key}' in uri='{ref.uri}'")
        return "\n".join(lines)

    def source(self, index: int) -> Source:
        return Source(self.uri, self.reference, index)

    def key_values(self, pairs: Iterable[Tuple[str, str]]) -> List[KeyValue]:
        """Wrap loaded pairs with this resource as their source."""
        return [
            KeyValue.of(key, value, self.source(i))
            for i, (key, value) in enumerate(pairs, start=1)
        ]


@dataclass(frozen=True)
class NamedKeyValues:
    """In-memory key/values seeded under a name.

    Attributes:
        name: Alphanumeric name.
        key_values: The key/values, sourced from ``null:///<name>``.
    """

    name: str
    key_values: Tuple[KeyValue, ...] = ()

    kind = SourceKind.KEY_VALUES

    def __post_init__(self) -> None:
        validate_name(self.name)
        uri = NULL_URI + self.name
        kvs = tuple(
            kv.with_source(replace(kv.source, uri=uri)) if kv.source.is_null() else kv
            for kv in self.key_values
        )
        object.__setattr__(self, "key_values", kvs)

    @property
    def load_flags(self) -> FrozenSet[LoadFlag]:
        return frozenset()

    @property
    def reference(self) -> Optional[KeyValueReference]:
        return None

    def describe(self, include_reference: bool = False) -> str:
        return f"uri='{NULL_URI}{self.name}'"

    def describe_chain(self) -> str:
        return self.describe()


SeedSource = Union[Resource, NamedKeyValues]


def make_resource(
    uri: str,
    *,
    name: Optional[str] = None,
    flags: Union[str, Iterable[Union[str, LoadFlag]], None] = None,
    media_type: Optional[str] = None,
    parameters: Optional[Mapping[str, str]] = None,
    filters: Optional[Iterable[Union[Filter, Mapping[str, str]]]] = None,
    reference: Optional[KeyValueReference] = None,
) -> Resource:
    """Build a validated Resource.

    Args:
        uri: Resource URI.
        name: Resource name, derived from the URI when omitted.
        flags: CSV string or iterable of spellings/LoadFlag members.
        media_type: Explicit media type.
        parameters: Loader parameters.
        filters: Filters or dicts with ``id``, ``expression`` and ``name``.
        reference: Declaring key/value reference.

    Returns:
        The Resource.

    Raises:
        ResourceDeclarationError: Invalid name or filter.
        FlagError: Unknown flag spelling.
    """
    parsed: set = set()
    if isinstance(flags, str):
        load_flags.parse_csv(flags, parsed)
    elif flags is not None:
        for item in flags:
            if isinstance(item, LoadFlag):
                parsed.add(item)
            else:
                load_flags.parse_csv(item, parsed)
    built_filters: List[Filter] = []
    for f in filters or ():
        built_filters.append(f if isinstance(f, Filter) else Filter.from_dict(f))
    return Resource(
        uri=uri,
        name=name if name is not None else name_from_uri(uri),
        load_flags=frozenset(parsed),
        parameters=dict(parameters or {}),
        filters=tuple(built_filters),
        media_type=media_type,
        reference=reference,
    )


def named_key_values(
    name: str, values: Union[Mapping[str, str], Iterable[Tuple[str, str]], Sequence[KeyValue]]
) -> NamedKeyValues:
    """Build an in-memory source from a mapping, pairs or key/values."""
    items = values.items() if isinstance(values, Mapping) else values
    kvs: List[KeyValue] = []
    for item in items:
        if isinstance(item, KeyValue):
            kvs.append(item)
        else:
            key, value = item
            kvs.append(KeyValue.of(str(key), str(value)))
    return NamedKeyValues(name, tuple(kvs))


def validate_names(sources: Iterable[SeedSource]) -> None:
    """Reject duplicate names within one batch of sources.

    Raises:
        ResourceDeclarationError: If two sources share a name.
    """
    seen = set()
    for src in sources:
        if src.name in seen:
            raise ResourceDeclarationError(
                f"Duplicate name found in grouped resources. name={src.name}"
            )
        seen.add(src.name)
