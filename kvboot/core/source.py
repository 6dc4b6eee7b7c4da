"""Loader protocol and registration for resource URI schemes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol, Sequence, Tuple
from urllib.parse import urlsplit

from .codec import ResourceKeyCodec
from .errors import ResourceLoadError
from .interpolate import Variables
from .resource import Resource
from .types import KeyValue

if TYPE_CHECKING:
    from ..media.base import Media, MediaRegistry
    from .host import Host


def uri_scheme(uri: str) -> str:
    return urlsplit(uri).scheme.lower()


def uri_path(uri: str) -> str:
    """Path of a URI without the leading slash; ``""`` for ``/`` or none."""
    path = urlsplit(uri).path
    if path in ("", "/"):
        return ""
    return path[1:] if path.startswith("/") else path


@dataclass(frozen=True)
class LoaderContext:
    """Collaborators available to a loader.

    Attributes:
        host: Facts about the running process.
        media: Codec registry.
        codec: Reserved-key codec, for loaders that emit resources.
        variables: Variables resolved so far.
    """

    host: "Host"
    media: "MediaRegistry"
    codec: ResourceKeyCodec
    variables: Variables

    def require_media(self, resource: Resource) -> "Media":
        return self.media.require(resource.uri, resource.media_type)

    def parse(self, resource: Resource, text: str) -> List[KeyValue]:
        media = self.require_media(resource)
        return resource.key_values(self.media.parse(media, text))

    def format_resource(self, resource: Resource) -> List[Tuple[str, str]]:
        return self.codec.format(resource)

    def format_parameter_key(self, resource: Resource, parameter: str) -> str:
        return self.codec.format_parameter_key(resource, parameter)


class Loader(Protocol):
    """Protocol for resource loaders.

    Loaders signal a missing resource with FileNotFoundError and any other
    failure with OSError.
    """

    def matches(self, resource: Resource) -> bool:
        """Check if this loader handles the resource's URI.

        Args:
            resource: Resource to load.

        Returns:
            True if the loader can load it.
        """
        ...

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        """Load the key/values of a resource.

        Args:
            context: Loader collaborators.
            resource: Resource to load.

        Returns:
            Key/values in resource order, sourced from the resource.

        Raises:
            FileNotFoundError: The resource does not exist.
            OSError: Any other I/O failure.
        """
        ...


class LoaderRegistry:
    """Loaders tried in registration order."""

    def __init__(self, loaders: Optional[Iterable[Loader]] = None):
        self._loaders: List[Loader] = list(loaders if loaders is not None else default_loaders())

    def register(self, loader: Loader) -> None:
        self._loaders.insert(0, loader)

    @property
    def loaders(self) -> Sequence[Loader]:
        return tuple(self._loaders)

    def find(self, resource: Resource) -> Optional[Loader]:
        for loader in self._loaders:
            if loader.matches(resource):
                return loader
        return None

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        loader = self.find(resource)
        if loader is None:
            raise ResourceLoadError(
                f"Resource loader could not be found for scheme '{uri_scheme(resource.uri)}'."
            )
        return loader.load(context, resource)


def default_loaders() -> List[Loader]:
    # Lazy imports to keep scheme implementations out of module load
    from ..sources.file import ClasspathLoader, FileLoader
    from ..sources.process import (
        CommandLineLoader,
        EnvLoader,
        NullLoader,
        StdinLoader,
        SystemLoader,
    )
    from ..sources.profile import ProfileLoader

    return [
        ClasspathLoader(),
        FileLoader(),
        SystemLoader(),
        EnvLoader(),
        CommandLineLoader(),
        StdinLoader(),
        ProfileLoader(),
        NullLoader(),
    ]
