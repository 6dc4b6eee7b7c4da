"""Loaders for facts of the running process.

``system:``, ``env:`` and ``cmd:`` load every entry; with a URI path
(``env:///APP_CONFIG``) the value of that one key is parsed with the
resource media instead.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from ..core.errors import ResourceLoadError
from ..core.resource import Resource
from ..core.source import LoaderContext, uri_path, uri_scheme
from ..core.types import KeyValue

logger = logging.getLogger(__name__)


def maybe_use_key_from_uri(
    context: LoaderContext, resource: Resource, kvs: List[KeyValue]
) -> List[KeyValue]:
    """Parse the value of the key named by the URI path, if there is one.

    Raises:
        FileNotFoundError: If the key is not present.
    """
    key = uri_path(resource.uri)
    if not key:
        return kvs
    logger.debug("Using key specified in URI path. key: %s resource: %s", key, resource.describe())
    found = [kv for kv in kvs if kv.key == key]
    if not found:
        raise FileNotFoundError(
            f"Key not found specified in URI path. key: '{key}' resource: {resource.describe()}"
        )
    return context.parse(resource, found[-1].value)


def command_line_pairs(args: Iterable[str]) -> List[Tuple[str, str]]:
    """Pairs from ``key=value`` arguments; other arguments are ignored."""
    pairs: List[Tuple[str, str]] = []
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep:
            pairs.append((key, value))
    return pairs


class _SchemeLoader:
    scheme = ""

    def matches(self, resource: Resource) -> bool:
        return uri_scheme(resource.uri) == self.scheme


class SystemLoader(_SchemeLoader):
    scheme = "system"

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        props = context.host.system_properties
        kvs = resource.key_values((k, v) for k, v in props.items() if v is not None)
        return maybe_use_key_from_uri(context, resource, kvs)


class EnvLoader(_SchemeLoader):
    scheme = "env"

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        kvs = resource.key_values(context.host.env.items())
        return maybe_use_key_from_uri(context, resource, kvs)


class CommandLineLoader(_SchemeLoader):
    scheme = "cmd"

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        kvs = resource.key_values(command_line_pairs(context.host.argv))
        return maybe_use_key_from_uri(context, resource, kvs)


class StdinLoader(_SchemeLoader):
    """Parse standard input, or with a URI path use it as that key's value."""

    scheme = "stdin"

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        key = uri_path(resource.uri)
        text = context.host.read_stdin()
        if not key:
            return context.parse(resource, text)
        return resource.key_values([(key, text)])


class NullLoader(_SchemeLoader):
    scheme = "null"

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        raise ResourceLoadError(f"null resource not allowed. {resource.describe()}")
