"""Text codecs for key/values.

This package contains the codecs used to parse loaded resources and to
render resolved key/values: Java-style properties, URL-encoded, JSON,
YAML, INI and dotenv.
"""

from .base import Media, MediaRegistry, default_media, uri_extension
from .properties import PropertiesMedia, format_properties, parse_properties

__all__ = [
    "Media",
    "MediaRegistry",
    "default_media",
    "uri_extension",
    "PropertiesMedia",
    "format_properties",
    "parse_properties",
]
