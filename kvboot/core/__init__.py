from .errors import (
    CircularReferenceError,
    FilterError,
    FlagError,
    InterpolationError,
    KvBootError,
    MediaError,
    MissingVariableError,
    ResourceDeclarationError,
    ResourceLoadError,
    ResourceNotFoundError,
    VariableLookupError,
)
from .flags import LoadFlag
from .interpolate import Interpolator, Variables
from .random_variables import RandomVariables
from .resource import Filter, NamedKeyValues, Resource, make_resource, named_key_values
from .types import KeyValue, KeyValueFlag, Source

__all__ = [
    "CircularReferenceError",
    "FilterError",
    "FlagError",
    "InterpolationError",
    "KvBootError",
    "MediaError",
    "MissingVariableError",
    "ResourceDeclarationError",
    "ResourceLoadError",
    "ResourceNotFoundError",
    "VariableLookupError",
    "LoadFlag",
    "Interpolator",
    "Variables",
    "RandomVariables",
    "Filter",
    "NamedKeyValues",
    "Resource",
    "make_resource",
    "named_key_values",
    "KeyValue",
    "KeyValueFlag",
    "Source",
]
