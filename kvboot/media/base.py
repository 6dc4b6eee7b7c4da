"""Media protocol and the registry that picks a codec for a resource."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Tuple
from urllib.parse import urlsplit

from ..core.errors import KvBootError, MediaError

logger = logging.getLogger(__name__)

Pairs = List[Tuple[str, str]]


class Media(Protocol):
    """Protocol for key/value text codecs.

    A codec is found by its media type or by one of its file extensions.
    """

    media_type: str
    file_extensions: Tuple[str, ...]

    def parse(self, text: str) -> Pairs:
        """Parse text into ordered key/value pairs.

        Args:
            text: Resource content.

        Returns:
            Pairs in document order.
        """
        ...

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        """Render key/value pairs as text.

        Args:
            pairs: Pairs to render.

        Returns:
            The rendered text.
        """
        ...


def uri_extension(uri: str) -> Optional[str]:
    path = urlsplit(uri).path
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[-1].lower()


class MediaRegistry:
    """Codecs looked up by media type or file extension."""

    def __init__(self, media: Optional[Iterable[Media]] = None, default_media_type: Optional[str] = None):
        self._media: List[Media] = []
        for m in media if media is not None else default_media():
            self.register(m)
        self.default_media_type = default_media_type or (
            self._media[0].media_type if self._media else None
        )

    def register(self, media: Media) -> None:
        self._media.append(media)

    def find_by_media_type(self, media_type: str) -> Optional[Media]:
        wanted = media_type.strip().lower()
        for m in self._media:
            if m.media_type.lower() == wanted:
                return m
        # short forms such as "properties" or "yaml"
        return self.find_by_extension(wanted)

    def find_by_extension(self, ext: str) -> Optional[Media]:
        wanted = ext.lower().lstrip(".")
        for m in self._media:
            if wanted in m.file_extensions:
                return m
        return None

    def find_by_uri(self, uri: str) -> Optional[Media]:
        ext = uri_extension(uri)
        return None if ext is None else self.find_by_extension(ext)

    def require(self, uri: str, media_type: Optional[str] = None) -> Media:
        """Pick the codec for a resource.

        The explicit media type wins, then the URI file extension, then the
        default media type.

        Raises:
            MediaError: If no codec matches.
        """
        if media_type:
            found = self.find_by_media_type(media_type)
            if found is None:
                raise MediaError(f"Media type not found. media type: '{media_type}', uri: '{uri}'")
            return found
        found = self.find_by_uri(uri)
        if found is None and self.default_media_type:
            found = self.find_by_media_type(self.default_media_type)
        if found is None:
            raise MediaError(f"Media type not found for uri: '{uri}'")
        return found

    def parse(self, media: Media, text: str) -> Pairs:
        """Parse with ``media``, wrapping codec failures in MediaError."""
        try:
            return media.parse(text)
        except KvBootError:
            raise
        except Exception as e:
            raise MediaError(f"Failed to parse media. media type: '{media.media_type}': {e}") from e

    def format(self, media_type: str, pairs: Iterable[Tuple[str, str]]) -> str:
        media = self.find_by_media_type(media_type)
        if media is None:
            raise MediaError(f"Media type not found. media type: '{media_type}'")
        try:
            return media.format(pairs)
        except KvBootError:
            raise
        except Exception as e:
            raise MediaError(f"Failed to format media. media type: '{media_type}': {e}") from e


def default_media() -> List[Media]:
    # Lazy imports so codecs only load when a registry is built
    from .dotenv import DotEnvMedia
    from .ini import IniMedia
    from .properties import PropertiesMedia
    from .structured import JsonMedia, YamlMedia
    from .urlencoded import UrlEncodedMedia

    return [
        PropertiesMedia(),
        UrlEncodedMedia(),
        JsonMedia(),
        YamlMedia(),
        IniMedia(),
        DotEnvMedia(),
    ]
