"""kvboot - Bootstrap configuration resolver.

Resolve seed resources into an ordered list of key/values. Loaded
key/values may declare further resources, flags, parameters and filters
with reserved keys, and may reference each other with ``${name}``.
"""

from .core.config import Config
from .core.environment import Environment
from .core.host import Host, ResolverOptions
from .core.resolver import Resolver, resolve
from .core.resource import Filter, Resource, make_resource, named_key_values
from .core.types import KeyValue

__all__ = [
    "Environment",
    "Config",
    "Host",
    "ResolverOptions",
    "Resolver",
    "resolve",
    "Filter",
    "Resource",
    "make_resource",
    "named_key_values",
    "KeyValue",
]
