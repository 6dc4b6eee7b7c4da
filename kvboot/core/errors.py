"""Exception hierarchy for the kvboot resolver."""

from __future__ import annotations

from typing import List, Optional


class KvBootError(Exception):
    """Base class for all resolver errors.

    Errors raised while a resource is being processed get the description
    of its load chain attached so the failure can be traced back to the
    key that declared the resource.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.load_chain: Optional[str] = None

    def attach_load_chain(self, description: str) -> None:
        if self.load_chain is None:
            self.load_chain = description

    def __str__(self) -> str:
        if self.load_chain is None:
            return self.message
        return f"{self.message} resource: {self.load_chain}"


class MediaError(KvBootError):
    """No codec could be found or a codec failed to parse/format."""


class InterpolationError(KvBootError):
    """A value could not be interpolated."""

    def __init__(self, message: str, key: str = "", raw: str = ""):
        super().__init__(message)
        self.key = key
        self.raw = raw


class MissingVariableError(InterpolationError):
    """A ``${name}`` reference has no value and no default."""

    def __init__(self, key: str, variable: str, raw: str):
        super().__init__(
            f"Variable is missing for key. key: '{key}', variable: '{variable}', raw: '{raw}'",
            key=key,
            raw=raw,
        )
        self.variable = variable


class CircularReferenceError(InterpolationError):
    """Variable substitution came back to a variable already being resolved."""

    def __init__(self, key: str, raw: str, chain: List[str]):
        super().__init__(
            f"Infinite recursion for key. key: '{key}', "
            f"chain: {'->'.join(chain)}, raw: '{raw}'",
            key=key,
            raw=raw,
        )
        self.chain = list(chain)


class VariableLookupError(KvBootError, ValueError):
    """A variable layer could not produce a value for a name it owns."""


class ResourceDeclarationError(KvBootError, ValueError):
    """Malformed resource names or reserved keys."""


class FlagError(KvBootError, ValueError):
    """Unknown flag spelling."""


class FilterError(KvBootError, ValueError):
    """Unknown filter id or a filter that failed to apply."""


class ResourceLoadError(KvBootError, OSError):
    """A resource could not be loaded or violated its load flags."""


class ResourceNotFoundError(ResourceLoadError):
    """A required resource does not exist."""


class ConfigFileError(KvBootError, ValueError):
    """The kvboot.yaml project file is invalid."""
