"""Facts about the running process and resolver options."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from random import Random
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..media.properties import MEDIA_TYPE as PROPERTIES_MEDIA_TYPE
from .types import REDACTED_MESSAGE


def default_system_properties() -> Dict[str, str]:
    return {
        "user.home": str(Path.home()),
        "user.dir": os.getcwd(),
        "os.name": platform.system(),
        "file.separator": os.sep,
        "path.separator": os.pathsep,
        "line.separator": os.linesep,
        "python.version": platform.python_version(),
    }


def _read_stdin() -> str:
    return sys.stdin.read()


@dataclass
class Host:
    """Process facts read by the loaders.

    Attributes:
        env: Environment variables (``env:`` scheme).
        argv: Command-line arguments (``cmd:`` scheme).
        system_properties: Process properties (``system:`` scheme).
        stdin: Callable returning standard input (``stdin:`` scheme).
        resource_roots: Directories searched by the ``classpath:`` scheme.
        random: Source of ``${random.*}`` variables; seed it for repeatable runs.
    """

    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    argv: Sequence[str] = field(default_factory=lambda: list(sys.argv[1:]))
    system_properties: Mapping[str, str] = field(default_factory=default_system_properties)
    stdin: Callable[[], str] = _read_stdin
    resource_roots: List[Path] = field(default_factory=lambda: [Path.cwd()])
    random: Random = field(default_factory=Random)

    def read_stdin(self) -> str:
        return self.stdin()

    def find_resource(self, path: str) -> Path:
        """Find a classpath resource under the resource roots.

        Args:
            path: Relative resource path.

        Returns:
            The first existing file.

        Raises:
            FileNotFoundError: If no root has the file.
        """
        relative = path.lstrip("/")
        for root in self.resource_roots:
            candidate = Path(root) / relative
            if candidate.is_file():
                return candidate
        raise FileNotFoundError(f"Resource not found on resource roots: {path}")


@dataclass(frozen=True)
class ResolverOptions:
    """Options threaded through a resolution.

    Attributes:
        key_prefix: Prefix of reserved keys.
        key_separator: Separator inside reserved keys.
        redacted_message: Placeholder shown for sensitive values.
        default_resource: Seed URI used when no seed is registered.
        default_media_type: Media type used when a URI has no known extension.
    """

    key_prefix: str = "_"
    key_separator: str = "_"
    redacted_message: str = REDACTED_MESSAGE
    default_resource: str = "classpath:/boot.properties"
    default_media_type: Optional[str] = PROPERTIES_MEDIA_TYPE
