"""
Content library, VM class and storage policy options for namespaces.

Users may pass names or identifiers. Names are resolved to identifiers
before the request body is built; anything that does not resolve is sent
as given and assumed to already be an identifier.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from vctl.exceptions import VctlError, VSphereConnectionError
from vctl.rest.client import RestClient

logger = logging.getLogger(__name__)

LIBRARY_FIND = "/api/content/library"
STORAGE_POLICIES = "/api/vcenter/storage/policies"


def find_library_id(rest: RestClient, name: str) -> str | None:
    """Return the id of the content library called ``name`` if exactly one exists."""
    ids = rest.post(LIBRARY_FIND, params={"action": "find"}, json={"name": name}) or []
    if len(ids) == 1:
        return ids[0]
    if len(ids) > 1:
        logger.warning("Content library name '%s' matches %d libraries", name, len(ids))
    return None


def storage_policy_map(rest: RestClient) -> dict[str, str]:
    """Map storage policy names to policy ids."""
    policies = rest.get(STORAGE_POLICIES) or []
    return {p["name"]: p["policy"] for p in policies if "name" in p and "policy" in p}


@dataclass
class NamespaceOptions:
    """Values of the repeatable --library, --vmclass and --storage options."""

    libraries: list[str] = field(default_factory=list)
    vm_classes: list[str] = field(default_factory=list)
    storage_policies: list[str] = field(default_factory=list)

    def process(self, rest: RestClient) -> None:
        """
        Resolve library and storage policy names in place.

        Library lookups that fail are ignored and the value is kept; a
        failed login is not a failed lookup and propagates. The storage
        policy listing must succeed, since names cannot be told apart from
        ids without it.
        """
        for i, name in enumerate(self.libraries):
            try:
                library_id = find_library_id(rest, name)
            except VSphereConnectionError:
                raise
            except VctlError as e:
                logger.debug("Content library lookup for '%s' failed: %s", name, e)
                continue
            if library_id is not None:
                logger.debug("Content library '%s' is %s", name, library_id)
                self.libraries[i] = library_id

        if not self.storage_policies:
            return

        policies = storage_policy_map(rest)
        for i, name in enumerate(self.storage_policies):
            if name in policies:
                logger.debug("Storage policy '%s' is %s", name, policies[name])
                self.storage_policies[i] = policies[name]

    def storage_specs(self) -> list[dict[str, str]]:
        return [{"policy": policy} for policy in self.storage_policies]

    def vm_service_spec(self) -> dict[str, Any]:
        spec: dict[str, Any] = {}
        if self.libraries:
            spec["content_libraries"] = list(self.libraries)
        if self.vm_classes:
            spec["vm_classes"] = list(self.vm_classes)
        return spec
