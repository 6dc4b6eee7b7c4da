"""Environment management for seed resources."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .config import Config
from .config_loader import ConfigLoader
from .host import Host, ResolverOptions
from .interpolate import Variables
from .random_variables import RandomVariables
from .resource import Filter, SeedSource, make_resource, named_key_values
from .resolver import Resolver
from .types import KeyValue

logger = logging.getLogger(__name__)


class Environment:
    """Manage the seed resources for a specific environment.

    An Environment represents a named list of seed resources that are
    resolved into a Config. Seeds listed for the environment in
    ``kvboot.yaml`` are registered first.
    """

    def __init__(
        self,
        name: str,
        *,
        host: Optional[Host] = None,
        options: Optional[ResolverOptions] = None,
        config_path: Optional[Union[str, Path]] = None,
        use_config_file: bool = True,
    ):
        """Initialize Environment with a name.

        Args:
            name: Environment name (e.g., 'development', 'production').
            host: Process facts; the current process when omitted.
            options: Resolver options.
            config_path: Explicit kvboot.yaml path, searched for when omitted.
            use_config_file: Whether to read kvboot.yaml at all.
        """
        self.name = name
        self.host = host if host is not None else Host()
        self.options = options if options is not None else ResolverOptions()
        self._registered: List[SeedSource] = []
        self._variables: Dict[str, str] = {}
        if use_config_file:
            self._load_from_config_file(config_path)

    def _load_from_config_file(self, config_path: Optional[Union[str, Path]]) -> None:
        loader = ConfigLoader(config_path)
        for source_config in loader.get_sources(self.name):
            self.register_source(**loader.parse_source(source_config))
        self._variables.update(loader.get_variables(self.name))

    @property
    def seeds(self) -> List[SeedSource]:
        return list(self._registered)

    def register_sources(self, *uris: Union[str, Path]) -> None:
        """Register multiple seed resources.

        Args:
            *uris: Variable number of URIs or file paths.
        """
        for item in uris:
            self.register_source(item)

    def register_source(
        self,
        uri: Union[str, Path],
        *,
        name: Optional[str] = None,
        flags: Union[str, Iterable[str], None] = None,
        media_type: Optional[str] = None,
        parameters: Optional[Mapping[str, str]] = None,
        filters: Optional[Iterable[Union[Filter, Mapping[str, str]]]] = None,
    ) -> None:
        """Register a single seed resource.

        Args:
            uri: URI or file path of the resource.
            name: Optional alphanumeric name, derived from the URI otherwise.
            flags: Load flags as CSV or list of spellings.
            media_type: Media type overriding the URI extension.
            parameters: Loader parameters.
            filters: Filters to apply after loading.
        """
        self._registered.append(
            make_resource(
                str(uri),
                name=name,
                flags=flags,
                media_type=media_type,
                parameters=parameters,
                filters=filters,
            )
        )

    def register_key_values(
        self,
        name: str,
        values: Union[Mapping[str, str], Iterable[Tuple[str, str]], Iterable[KeyValue]],
    ) -> None:
        """Register in-memory key/values as a seed.

        Args:
            name: Alphanumeric name; values are sourced from ``null:///<name>``.
            values: Mapping, pairs or key/values.
        """
        self._registered.append(named_key_values(name, values))

    def add_variables(self, variables: Mapping[str, Any]) -> None:
        """Add read-only variables consulted after resolved values."""
        self._variables.update({str(k): str(v) for k, v in variables.items()})

    def resolver(self) -> Resolver:
        return Resolver(host=self.host, options=self.options)

    def resolve(self) -> List[KeyValue]:
        seeds = self.seeds
        if not seeds:
            logger.debug("No seeds registered, using %s", self.options.default_resource)
            seeds = [make_resource(self.options.default_resource, name="default", flags="optional")]
        # user variables shadow the random.* layer
        variables = Variables(dict(self._variables), RandomVariables(self.host.random))
        return self.resolver().resolve(seeds, variables)

    def get_config(self) -> Config:
        """Get a Config with all registered seeds resolved.

        Returns:
            Config wrapping the resolved key/values.
        """
        return Config(
            self.resolve(),
            _resolve=self.resolve,
            redacted_message=self.options.redacted_message,
        )
