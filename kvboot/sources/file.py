"""Filesystem and resource-root loaders."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlsplit

from ..core.errors import MediaError, ResourceLoadError
from ..core.resource import Resource
from ..core.source import LoaderContext, uri_scheme
from ..core.types import KeyValue


def file_path_or_none(uri: str) -> Optional[Path]:
    parts = urlsplit(uri)
    scheme = parts.scheme.lower()
    if scheme == "file":
        return Path(unquote(parts.path))
    if not scheme and parts.path:
        return Path(unquote(parts.path))
    return None


def _read(path: Path) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise MediaError(f"Resource is not valid UTF-8. path='{path}'") from e


class FileLoader:
    """Load ``file:`` URIs and plain paths."""

    def matches(self, resource: Resource) -> bool:
        return file_path_or_none(resource.uri) is not None

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        path = file_path_or_none(resource.uri)
        if path is None:
            raise ResourceLoadError(f"Not a file resource. uri='{resource.uri}'")
        return context.parse(resource, _read(path))


class ClasspathLoader:
    """Load ``classpath:`` URIs from the host's resource roots."""

    scheme = "classpath"

    def matches(self, resource: Resource) -> bool:
        return uri_scheme(resource.uri) == self.scheme

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        path = unquote(urlsplit(resource.uri).path)
        return context.parse(resource, _read(context.host.find_resource(path)))
