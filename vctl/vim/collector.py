"""
Property collection over container views.
"""

import logging
from typing import Any

from pyVmomi import vim, vmodl

logger = logging.getLogger(__name__)

PropertyCollector = vmodl.query.PropertyCollector


def _parse_object_content(oc) -> dict[str, Any]:
    props = {p.name: p.val for p in (oc.propSet or [])}
    props["obj"] = oc.obj
    return props


def retrieve(content, root, obj_type, properties: list[str]) -> list[dict[str, Any]]:
    """
    Retrieve properties of every ``obj_type`` object below ``root``.

    Args:
        content: vim.ServiceContent
        root: Folder or Datacenter to search (recursively)
        obj_type: Managed object class, e.g. vim.HostSystem
        properties: Property paths to fetch

    Returns:
        One dict per object: ``obj`` plus each returned property path.
        Unset properties are absent from the dict.
    """
    view = content.viewManager.CreateContainerView(root, [obj_type], True)
    try:
        traversal = PropertyCollector.TraversalSpec(
            name="traverseEntities",
            type=vim.view.ContainerView,
            path="view",
            skip=False,
        )
        obj_spec = PropertyCollector.ObjectSpec(obj=view, skip=True, selectSet=[traversal])
        prop_spec = PropertyCollector.PropertySpec(type=obj_type, pathSet=properties, all=False)
        filter_spec = PropertyCollector.FilterSpec(objectSet=[obj_spec], propSet=[prop_spec])

        pc = content.propertyCollector
        result = pc.RetrievePropertiesEx(
            specSet=[filter_spec], options=PropertyCollector.RetrieveOptions()
        )

        objects = []
        while result is not None:
            objects.extend(_parse_object_content(oc) for oc in (result.objects or []))
            if not result.token:
                break
            result = pc.ContinueRetrievePropertiesEx(token=result.token)
    finally:
        view.Destroy()

    logger.debug("Retrieved %d %s object(s)", len(objects), obj_type.__name__)
    return objects
