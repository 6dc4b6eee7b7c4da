"""Project file (``kvboot.yaml``) listing the seeds of each environment."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .errors import ConfigFileError
from .resource import Filter

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "kvboot.yaml"


def find_project_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for kvboot.yaml in ``start`` (the working directory) and its parents."""
    here = start if start is not None else Path.cwd()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


class ConfigLoader:
    """Reads seeds and variables per environment from kvboot.yaml.

    Example file::

        environments:
          development:
            variables: {region: eu}
            sources:
              - classpath:/boot.properties
              - uri: file:./local.properties
                flags: [optional]
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Locate the project file.

        Args:
            config_path: Explicit file; when None the working directory and
                its parents are searched. A path that does not exist means
                there is no project file.
        """
        if config_path is None:
            self.config_path = find_project_file()
        else:
            explicit = Path(config_path)
            self.config_path = explicit if explicit.exists() else None
        self._document: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """Parse the project file once.

        Returns:
            The document, empty when there is no readable file.

        Raises:
            ConfigFileError: Malformed YAML or a document that is not a mapping.
        """
        if self._document is None:
            self._document = self._read() if self.config_path is not None else {}
        return self._document

    def _read(self) -> Dict[str, Any]:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read %s at %s: %s", CONFIG_FILE_NAME, self.config_path, e)
            return {}
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigFileError(f"Invalid {CONFIG_FILE_NAME} at {self.config_path}: {e}") from e
        if document is None:
            return {}
        if not isinstance(document, dict):
            raise ConfigFileError(f"Invalid {CONFIG_FILE_NAME} at {self.config_path}: expected a mapping")
        return document

    def get_environment_config(self, environment_name: str) -> Optional[Dict[str, Any]]:
        return (self.load().get("environments") or {}).get(environment_name)

    def get_sources(self, environment_name: str) -> List[Any]:
        section = self.get_environment_config(environment_name) or {}
        return list(section.get("sources") or [])

    def get_variables(self, environment_name: str) -> Dict[str, str]:
        section = self.get_environment_config(environment_name) or {}
        return {str(k): str(v) for k, v in (section.get("variables") or {}).items()}

    def parse_source(self, source_config: Union[str, Mapping[str, Any]]) -> Dict[str, Any]:
        """Turn one ``sources`` entry into Environment.register_source arguments.

        Args:
            source_config: A URI, or a mapping with ``uri`` (or ``path``) and
                any of ``name``, ``flags``, ``media_type``, ``parameters``
                and ``filters``.

        Raises:
            ConfigFileError: If the entry has neither ``uri`` nor ``path``.
        """
        if isinstance(source_config, str):
            return {"uri": source_config}

        if "uri" in source_config:
            args: Dict[str, Any] = {"uri": str(source_config["uri"])}
        elif "path" in source_config:
            args = {"uri": str(Path(source_config["path"]))}
        else:
            raise ConfigFileError("Source must have either 'path' or 'uri'")

        if "name" in source_config:
            args["name"] = str(source_config["name"])
        flags = source_config.get("flags")
        if flags:
            # CSV text or a YAML list of spellings
            args["flags"] = flags if isinstance(flags, str) else [str(f) for f in flags]
        if source_config.get("media_type"):
            args["media_type"] = str(source_config["media_type"])
        if source_config.get("parameters"):
            args["parameters"] = {str(k): str(v) for k, v in source_config["parameters"].items()}
        if source_config.get("filters"):
            args["filters"] = [
                Filter.from_dict({k: str(v) for k, v in entry.items() if v is not None})
                for entry in source_config["filters"]
            ]
        return args
