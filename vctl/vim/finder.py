"""
Resolve user-supplied references to inventory objects.

A reference is one of:

* a managed object id (``vm-42``, ``host-10``, ``resgroup-8``)
* an inventory path, absolute (``/DC0/vm/web/web-01``) or relative to the
  datacenter's default folder (``web/web-01``)
* a plain name, searched with a container view under the datacenter
"""

import logging
import re

from pyVmomi import vim

from vctl.exceptions import MultipleObjectsFoundError, ObjectNotFoundError
from vctl.vim.collector import retrieve

logger = logging.getLogger(__name__)

# Managed object id prefixes and the datacenter folder holding each kind
KINDS = {
    "VirtualMachine": (vim.VirtualMachine, ("vm-",), "vm"),
    "HostSystem": (vim.HostSystem, ("host-",), "host"),
    "ResourcePool": (vim.ResourcePool, ("resgroup-",), "host"),
    "ClusterComputeResource": (vim.ClusterComputeResource, ("domain-c",), "host"),
    "Datacenter": (vim.Datacenter, ("datacenter-",), None),
    "Folder": (vim.Folder, ("group-",), "vm"),
}

MOID_PATTERN = re.compile(r"^[a-z]+(-[a-z]*\d+)+$")


def is_moid(reference: str, kind: str) -> bool:
    """True if ``reference`` looks like a managed object id of ``kind``."""
    prefixes = KINDS[kind][1]
    return bool(MOID_PATTERN.match(reference)) and reference.startswith(prefixes)


def inventory_path(obj) -> str:
    """
    Build the inventory path of an object.

    Walks ``parent`` links up to, but excluding, the root folder. Virtual
    machines inside a vApp follow ``parentVApp`` when ``parent`` is unset.

    Returns:
        Path such as ``/DC0/host/cluster1/esx-01``
    """
    names = []
    current = obj
    while current is not None:
        parent = getattr(current, "parent", None)
        if parent is None:
            parent = getattr(current, "parentVApp", None)
        if parent is None:
            # root folder
            break
        names.append(current.name)
        current = parent
    return "/" + "/".join(reversed(names))


class Finder:
    """Look up inventory objects by id, path or name."""

    def __init__(self, content, datacenter: str | None = None):
        """
        Initialize the finder.

        Args:
            content: vim.ServiceContent
            datacenter: Optional datacenter name/path used as the search root
        """
        self.content = content
        self.datacenter_name = datacenter
        self._datacenter = None

    @property
    def datacenter(self):
        """The configured datacenter object, or None when not configured."""
        if self._datacenter is None and self.datacenter_name:
            self._datacenter = self._find_datacenter(self.datacenter_name)
        return self._datacenter

    @property
    def root(self):
        """Search root: the datacenter if configured, else the root folder."""
        return self.datacenter or self.content.rootFolder

    def _stub(self):
        return getattr(self.content.rootFolder, "_stub", None)

    def _find_datacenter(self, reference: str):
        if is_moid(reference, "Datacenter"):
            return vim.Datacenter(reference, self._stub())
        if "/" in reference:
            return self._by_path("Datacenter", reference, reference)
        return self._by_name("Datacenter", reference, self.content.rootFolder)

    def _by_path(self, kind: str, reference: str, path: str):
        obj = self.content.searchIndex.FindByInventoryPath(inventoryPath=path)
        if obj is None or not isinstance(obj, KINDS[kind][0]):
            raise ObjectNotFoundError(kind, reference)
        return obj

    def _by_name(self, kind: str, reference: str, root):
        obj_type = KINDS[kind][0]
        matches = [
            item["obj"]
            for item in retrieve(self.content, root, obj_type, ["name"])
            if item.get("name") == reference
        ]
        if not matches:
            raise ObjectNotFoundError(kind, reference)
        if len(matches) > 1:
            raise MultipleObjectsFoundError(kind, reference, len(matches))
        return matches[0]

    def _absolute_path(self, kind: str, path: str) -> str:
        if path.startswith("/"):
            return path
        folder = KINDS[kind][2]
        if self.datacenter is None or folder is None:
            return "/" + path
        return f"{inventory_path(self.datacenter)}/{folder}/{path}"

    def find(self, kind: str, reference: str):
        """
        Resolve a single object.

        Args:
            kind: One of the keys of KINDS
            reference: Managed object id, inventory path or name

        Returns:
            The managed object

        Raises:
            ObjectNotFoundError: Nothing matches
            MultipleObjectsFoundError: A name matches more than one object
        """
        if kind == "Datacenter":
            return self._find_datacenter(reference)

        if is_moid(reference, kind):
            logger.debug("Using %s id %s", kind, reference)
            return KINDS[kind][0](reference, self._stub())

        if "/" in reference:
            path = self._absolute_path(kind, reference)
            logger.debug("Looking up %s by path %s", kind, path)
            return self._by_path(kind, reference, path)

        logger.debug("Looking up %s by name %s", kind, reference)
        return self._by_name(kind, reference, self.root)

    def find_if_specified(self, kind: str, reference: str | None):
        """Like find(), but returns None when no reference was given."""
        if not reference:
            return None
        return self.find(kind, reference)

    def virtual_machine(self, reference: str | None):
        return self.find_if_specified("VirtualMachine", reference)

    def host_system(self, reference: str | None):
        return self.find_if_specified("HostSystem", reference)

    def resource_pool(self, reference: str | None):
        return self.find_if_specified("ResourcePool", reference)

    def folder(self, reference: str | None):
        return self.find_if_specified("Folder", reference)
