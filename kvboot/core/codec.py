"""Resource declarations embedded in key/values and URI queries.

A resource is declared by a ``_load_<name>=<uri>`` key. Further keys
sharing the name refine it::

    _load_db=classpath:/db.properties
    _flags_db=optional,sensitive
    _mediaType_db=properties
    _param_db_region=eu
    _filter_db_grep=^db\\.

The same refinements can be put on the URI query instead
(``?_flags=optional&_param_region=eu``); keys in the key/values win over
the query.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode

from . import flags as load_flags
from .errors import ResourceDeclarationError
from .resource import Filter, Resource, validate_name
from .types import KeyValue, Source


class ResourceKey(Enum):
    """Kinds of reserved keys, with their accepted spellings."""

    LOAD = ("load",)
    FLAGS = ("flags", "flag")
    MEDIA_TYPE = ("mediaType", "mime")
    PARAM = ("param", "parm")
    FILTER = ("filter", "filt")

    @property
    def aliases(self) -> Tuple[str, ...]:
        return self.value

    @property
    def sub_name_count(self) -> int:
        return 2 if self in (ResourceKey.PARAM, ResourceKey.FILTER) else 1


@dataclass(frozen=True)
class ParsedKey:
    """A reserved key split into its kind and names."""

    kind: ResourceKey
    names: Tuple[str, ...]

    @property
    def resource_name(self) -> str:
        return self.names[0]


class ResourceKeyCodec:
    """Translate between key/values and resource declarations."""

    def __init__(self, prefix: str = "_", separator: str = "_"):
        self.prefix = prefix
        self.separator = separator

    def _key_prefix(self, alias: str) -> str:
        return f"{self.prefix}{alias}{self.separator}"

    def parse_key(self, key: str) -> Optional[ParsedKey]:
        """Split a reserved key into kind and names.

        Args:
            key: Any key.

        Returns:
            The parsed key, or None when the key is not reserved.

        Raises:
            ResourceDeclarationError: If the key is reserved but malformed.
        """
        for kind in ResourceKey:
            for alias in kind.aliases:
                key_prefix = self._key_prefix(alias)
                if not key.startswith(key_prefix):
                    continue
                rest = key[len(key_prefix):]
                if not rest:
                    raise ResourceDeclarationError(f"Bad resource key. key: '{key}'")
                names = tuple(rest.split(self.separator, 1))
                if len(names) != kind.sub_name_count or not all(names):
                    raise ResourceDeclarationError(
                        f"Bad resource key. key: '{key}' expected {kind.sub_name_count} name(s)"
                    )
                validate_name(names[0])
                return ParsedKey(kind, names)
        return None

    def is_reserved(self, key: str) -> bool:
        try:
            return self.parse_key(key) is not None
        except ResourceDeclarationError:
            # malformed reserved keys only fail discovery
            return False

    def discover(self, kvs: Sequence[KeyValue]) -> List[Resource]:
        """Find the resources declared in a batch of key/values.

        Args:
            kvs: Interpolated key/values.

        Returns:
            Resources in declaration order, each referencing its load key.

        Raises:
            ResourceDeclarationError: Malformed reserved keys or names.
        """
        resources: List[Resource] = []
        for kv in kvs:
            parsed = self.parse_key(kv.key)
            if parsed is None or parsed.kind is not ResourceKey.LOAD:
                continue
            name = parsed.resource_name
            resource = Resource(uri=kv.expanded, name=name, reference=kv.to_reference())
            resource = self.normalize(resource)
            resource = self._apply_keys(resource, kvs)
            resources.append(resource)
        return resources

    def _apply_keys(self, resource: Resource, kvs: Sequence[KeyValue]) -> Resource:
        flags = set(resource.load_flags)
        parameters = dict(resource.parameters)
        filters = list(resource.filters)
        media_type = resource.media_type
        for kv in kvs:
            parsed = self.parse_key(kv.key)
            if parsed is None or parsed.resource_name != resource.name:
                continue
            if parsed.kind is ResourceKey.FLAGS:
                flags = load_flags.parse_csv(kv.expanded)
            elif parsed.kind is ResourceKey.MEDIA_TYPE:
                media_type = kv.expanded
            elif parsed.kind is ResourceKey.PARAM:
                parameters[parsed.names[1]] = kv.expanded
            elif parsed.kind is ResourceKey.FILTER:
                filters.append(self._filter(parsed.names[1], kv.expanded))
        return resource.with_(
            load_flags=frozenset(flags),
            parameters=parameters,
            filters=tuple(filters),
            media_type=media_type,
        )

    def _filter(self, sub_name: str, expression: str) -> Filter:
        filter_id, _, name = sub_name.partition(self.separator)
        return Filter(filter_id, expression, name)

    def normalize(self, resource: Resource) -> Resource:
        """Move declarations from the URI query onto the resource.

        Consumed query parameters are removed from the URI; the rest are
        kept, re-encoded.
        """
        base, _, rest = resource.uri.partition("?")
        query, hash_mark, fragment = rest.partition("#")
        if not query:
            return resource
        flags = set(resource.load_flags)
        parameters = dict(resource.parameters)
        filters = list(resource.filters)
        media_type = resource.media_type
        remaining: List[Tuple[str, str]] = []
        for key, value in parse_qsl(query, keep_blank_values=True):
            parsed = self._parse_query_key(key)
            if parsed is None:
                remaining.append((key, value))
                continue
            kind, sub_name = parsed
            if kind is ResourceKey.FLAGS:
                load_flags.parse_csv(value, flags)
            elif kind is ResourceKey.MEDIA_TYPE:
                media_type = value
            elif kind is ResourceKey.PARAM:
                parameters[sub_name] = value
            elif kind is ResourceKey.FILTER:
                filters.append(self._filter(sub_name, value))
        uri = base
        if remaining:
            uri += "?" + urlencode(remaining)
        uri += hash_mark + fragment
        return resource.with_(
            uri=uri,
            load_flags=frozenset(flags),
            parameters=parameters,
            filters=tuple(filters),
            media_type=media_type,
        )

    def _parse_query_key(self, key: str) -> Optional[Tuple[ResourceKey, str]]:
        for kind in (ResourceKey.FLAGS, ResourceKey.MEDIA_TYPE, ResourceKey.PARAM, ResourceKey.FILTER):
            for alias in kind.aliases:
                key_prefix = self.prefix + alias
                if not key.startswith(key_prefix):
                    continue
                rest = key[len(key_prefix):]
                if kind.sub_name_count == 1:
                    if rest:
                        continue
                    return kind, ""
                if not rest.startswith(self.separator):
                    continue
                sub_name = rest[len(self.separator):]
                if not sub_name.strip():
                    raise ResourceDeclarationError(
                        f"Bad resource query parameter. parameter: '{key}'"
                    )
                return kind, sub_name
        return None

    def strip(self, kvs: Sequence[KeyValue]) -> List[KeyValue]:
        """Drop reserved keys from a batch."""
        return [kv for kv in kvs if not self.is_reserved(kv.key)]

    def format(self, resource: Resource) -> List[Tuple[str, str]]:
        """Render a resource as reserved key/value pairs.

        Args:
            resource: Resource to render.

        Returns:
            Pairs that ``discover`` turns back into an equivalent resource.
        """
        name = resource.name
        sep = self.separator
        pairs = [(f"{self._key_prefix('load')}{name}", resource.uri)]
        if resource.load_flags:
            pairs.append((f"{self._key_prefix('flags')}{name}", load_flags.to_csv(resource.load_flags)))
        if resource.media_type:
            pairs.append((f"{self._key_prefix('mediaType')}{name}", resource.media_type))
        for param, value in resource.parameters.items():
            pairs.append((self.format_parameter_key(resource, param), value))
        for flt in resource.filters:
            suffix = f"{sep}{flt.name}" if flt.name.strip() else ""
            pairs.append(
                (f"{self._key_prefix('filter')}{name}{sep}{flt.filter_id}{suffix}", flt.expression)
            )
        return pairs

    def format_key_values(self, resource: Resource, source: Optional[Source] = None) -> List[KeyValue]:
        src = source if source is not None else Source()
        return [KeyValue.of(k, v, src) for k, v in self.format(resource)]

    def format_parameter_key(self, resource: Resource, parameter: str) -> str:
        return f"{self._key_prefix('param')}{resource.name}{self.separator}{parameter}"

