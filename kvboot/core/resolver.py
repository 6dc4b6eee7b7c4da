"""Resolution of seed resources into the final ordered key/values."""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ..media.base import MediaRegistry
from .codec import ResourceKeyCodec
from .errors import KvBootError, ResourceLoadError, ResourceNotFoundError
from .filters import FilterContext, FilterRegistry
from .flags import LoadFlag, to_key_value_flags
from .host import Host, ResolverOptions
from .interpolate import Lookup, Variables, expand_key_values, interpolate_key_values
from .resource import Resource, SeedSource, SourceKind, validate_names
from .source import LoaderContext, LoaderRegistry
from .types import KeyValue

logger = logging.getLogger(__name__)


class Resolver:
    """Resolve seed resources with a fixed set of collaborators.

    A Resolver holds no state between runs; every call to ``resolve``
    owns its own worklist, result and variables.
    """

    def __init__(
        self,
        *,
        host: Optional[Host] = None,
        options: Optional[ResolverOptions] = None,
        loaders: Optional[LoaderRegistry] = None,
        media: Optional[MediaRegistry] = None,
        filters: Optional[FilterRegistry] = None,
    ):
        self.host = host if host is not None else Host()
        self.options = options if options is not None else ResolverOptions()
        self.loaders = loaders if loaders is not None else LoaderRegistry()
        self.media = media if media is not None else MediaRegistry(
            default_media_type=self.options.default_media_type
        )
        self.filters = filters if filters is not None else FilterRegistry()
        self.codec = ResourceKeyCodec(self.options.key_prefix, self.options.key_separator)

    def resolve(
        self,
        seeds: Iterable[SeedSource],
        variables: Union[Mapping[str, str], Lookup, None] = None,
    ) -> List[KeyValue]:
        """Resolve seeds into ordered key/values.

        Args:
            seeds: Resources and in-memory sources, in load order.
            variables: Read-only variables consulted after resolved values.

        Returns:
            Every added key/value in load order, duplicates included.

        Raises:
            ResourceNotFoundError: A required resource is missing.
            ResourceLoadError: A loader failed or a flag was violated.
            KvBootError: Declaration, interpolation, filter or media errors.
        """
        return _Run(self, variables).run(list(seeds))


class _Run:
    """State of one resolution."""

    def __init__(self, resolver: Resolver, variables: Union[Mapping[str, str], Lookup, None]):
        self.resolver = resolver
        self.codec = resolver.codec
        self.worklist: Deque[SeedSource] = deque()
        self.store: List[KeyValue] = []
        self.keys: Dict[str, KeyValue] = {}
        self.locked: Set[str] = set()
        self.hidden: Set[int] = set()
        # no-add batches, checked once every resource is loaded
        self.pending: List[Tuple[SeedSource, List[KeyValue]]] = []
        self.variable_store: Dict[str, str] = {}
        layers = [self.variable_store]
        if variables is not None:
            layers.append(variables)
        self.variables = Variables(*layers)

    def run(self, seeds: List[SeedSource]) -> List[KeyValue]:
        nodes = [self._normalize(s) for s in seeds]
        validate_names(nodes)
        self.worklist.extend(nodes)
        while self.worklist:
            node = self.worklist.popleft()
            try:
                self._process(node)
            except KvBootError as e:
                e.attach_load_chain(node.describe_chain())
                raise
        for node, kvs in self.pending:
            try:
                for key, value in interpolate_key_values(kvs, self.variables).items():
                    self.variable_store.setdefault(key, value)
            except KvBootError as e:
                e.attach_load_chain(node.describe_chain())
                raise
        return self._expand_result()

    def _expand_result(self) -> List[KeyValue]:
        if not self.hidden:
            return expand_key_values(self.store, self.variables)
        visible = [kv for kv in self.store if id(kv) not in self.hidden]
        hidden = [kv for kv in self.store if id(kv) in self.hidden]
        resolved = interpolate_key_values(visible, self.variables)
        # hidden key/values may use the others but not the other way round
        resolved_hidden = interpolate_key_values(hidden, Variables(resolved, self.variables))
        return [
            kv.with_expanded((resolved_hidden if id(kv) in self.hidden else resolved).get(kv.key))
            for kv in self.store
        ]

    def _normalize(self, node: SeedSource) -> SeedSource:
        if node.kind is SourceKind.RESOURCE:
            return self.codec.normalize(node)
        return node

    def _process(self, node: SeedSource) -> None:
        flags = node.load_flags
        if node.kind is SourceKind.KEY_VALUES:
            kvs = list(node.key_values)
        else:
            kvs = self._load(node)

        kv_flags = to_key_value_flags(flags)
        if kv_flags:
            kvs = [kv.add_flags(kv_flags) for kv in kvs]

        if LoadFlag.NO_INTERPOLATE not in flags:
            # values may reference keys of resources not loaded yet
            kvs = expand_key_values(kvs, self.variables, strict=self.codec.is_reserved)

        children = self.codec.discover(kvs)
        if children:
            if LoadFlag.NO_LOAD_CHILDREN in flags:
                raise ResourceLoadError(
                    "Resource not allowed to load children but declared: "
                    + ", ".join(c.name for c in children)
                )
            validate_names(children)
            # children go to the front, in declaration order
            self.worklist.extendleft(reversed(children))

        kvs = self.codec.strip(kvs)

        if node.kind is SourceKind.RESOURCE and node.filters:
            context = FilterContext(parameters=node.parameters)
            kvs = self.resolver.filters.apply(context, kvs, node.filters)

        if LoadFlag.NO_ADD in flags:
            self.variable_store.update(interpolate_key_values(kvs, self.variables, strict=False))
            self.pending.append((node, kvs))
        else:
            self._merge(node, kvs, flags)

        visible = [kv for kv in self.store if id(kv) not in self.hidden]
        self.variable_store.update(interpolate_key_values(visible, self.variables, strict=False))

    def _merge(self, node: SeedSource, kvs: List[KeyValue], flags) -> None:
        added = False
        for kv in kvs:
            if kv.key in self.keys:
                if LoadFlag.NO_REPLACE in flags:
                    logger.debug("Skipping existing key %s from %s", kv.key, node.describe())
                    continue
                if kv.key in self.locked:
                    logger.debug("Skipping locked key %s from %s", kv.key, node.describe())
                    continue
            self.keys[kv.key] = kv
            self.store.append(kv)
            added = True
            if LoadFlag.LOCK in flags:
                self.locked.add(kv.key)
            if LoadFlag.NO_ADD_VARIABLES in flags:
                self.hidden.add(id(kv))
        if not added and LoadFlag.NO_EMPTY in flags:
            raise ResourceLoadError(
                "Resource did not have any key values and was flagged not empty"
            )

    def _load(self, resource: Resource) -> List[KeyValue]:
        resolver = self.resolver
        context = LoaderContext(
            host=resolver.host,
            media=resolver.media,
            codec=self.codec,
            variables=self.variables,
        )
        logger.debug("Loading %s", resource.describe(include_reference=True))
        try:
            kvs = resolver.loaders.load(context, resource)
        except FileNotFoundError as e:
            if resource.has_flag(LoadFlag.NO_REQUIRE):
                logger.info("Missing %s", resource.describe())
                return []
            raise ResourceNotFoundError("Resource not found.") from e
        except KvBootError:
            raise
        except OSError as e:
            raise ResourceLoadError("Resource load fail.") from e
        logger.info("Loaded  %s", resource.describe())
        return kvs


def resolve(
    seeds: Iterable[SeedSource],
    variables: Union[Mapping[str, str], Lookup, None] = None,
    **collaborators,
) -> List[KeyValue]:
    """Resolve seeds with a one-off Resolver.

    Args:
        seeds: Resources and in-memory sources.
        variables: Read-only variables.
        **collaborators: Keyword arguments for Resolver.

    Returns:
        The resolved key/values.
    """
    return Resolver(**collaborators).resolve(seeds, variables)
