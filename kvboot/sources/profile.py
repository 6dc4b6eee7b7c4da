"""Fan a ``profile.<scheme>:`` URI out into one resource per profile."""

from __future__ import annotations

import logging
from typing import List

from ..core.resource import Resource
from ..core.source import LoaderContext, uri_scheme
from ..core.types import KeyValue

logger = logging.getLogger(__name__)

PROFILE_SCHEME_PREFIX = "profile."
PROFILE_PLACEHOLDER = "__PROFILE__"
PROFILE_PARAMETERS = ("profile", "profile.active", "profile.default")


class ProfileLoader:
    """Emit a ``_load_<name><i>`` declaration for every active profile.

    ``profile.classpath:/app-__PROFILE__.properties`` with profiles
    ``dev,local`` declares ``classpath:/app-dev.properties`` and
    ``classpath:/app-local.properties``. Profiles are read from the
    resource parameters, then from the variables prefixed with ``_``.
    """

    def matches(self, resource: Resource) -> bool:
        return uri_scheme(resource.uri).startswith(PROFILE_SCHEME_PREFIX)

    def _profiles(self, context: LoaderContext, resource: Resource) -> str:
        for name in PROFILE_PARAMETERS:
            value = resource.parameters.get(name)
            if value is not None:
                return value
        value = context.variables.find_entry(*("_" + name for name in PROFILE_PARAMETERS))
        if value is None:
            logger.info(
                "Profile(s) could not be found for resource. resource: %s tried parameter: %s",
                resource.describe(),
                context.format_parameter_key(resource, "profile"),
            )
            raise FileNotFoundError("profile parameter is required. Set it to CSV list of profiles.")
        return value

    def load(self, context: LoaderContext, resource: Resource) -> List[KeyValue]:
        uri = resource.uri[len(PROFILE_SCHEME_PREFIX):]
        csv = self._profiles(context, resource)
        if PROFILE_PLACEHOLDER not in uri:
            raise OSError(
                f"Resource needs '{PROFILE_PLACEHOLDER}' in URI to be replaced by extracted profiles. URI: {uri}"
            )
        profiles = list(dict.fromkeys(p.strip() for p in csv.split(",") if p.strip()))
        logger.info("Found profiles: %s", profiles)
        pairs = []
        for i, profile in enumerate(profiles):
            child = resource.with_(
                uri=uri.replace(PROFILE_PLACEHOLDER, profile),
                name=f"{resource.name}{i}",
            )
            pairs.extend(context.format_resource(child))
        return resource.key_values(pairs)
