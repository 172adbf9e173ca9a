"""
vSphere Namespace instances (Supervisor namespaces).
"""

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from rich.markup import escape
from rich.table import Table

from vctl.namespace.options import NamespaceOptions
from vctl.rest.client import RestClient

logger = logging.getLogger(__name__)

INSTANCES = "/api/vcenter/namespaces/instances"


def _instance_path(name: str) -> str:
    return f"{INSTANCES}/{quote(name, safe='')}"


def create_spec(name: str, supervisor: str, options: NamespaceOptions) -> dict[str, Any]:
    """Request body for creating a namespace."""
    spec: dict[str, Any] = {"namespace": name, "cluster": supervisor}
    storage_specs = options.storage_specs()
    if storage_specs:
        spec["storage_specs"] = storage_specs
    spec["vm_service_spec"] = options.vm_service_spec()
    return spec


def update_spec(options: NamespaceOptions) -> dict[str, Any]:
    """Request body for updating a namespace; unset parts are left alone."""
    spec: dict[str, Any] = {}
    storage_specs = options.storage_specs()
    if storage_specs:
        spec["storage_specs"] = storage_specs
    vm_service_spec = options.vm_service_spec()
    if vm_service_spec:
        spec["vm_service_spec"] = vm_service_spec
    return spec


def create_namespace(
    rest: RestClient, name: str, supervisor: str, options: NamespaceOptions
) -> None:
    options.process(rest)
    logger.info("Creating namespace %s on %s", name, supervisor)
    rest.post(INSTANCES, json=create_spec(name, supervisor, options))


def update_namespace(rest: RestClient, name: str, options: NamespaceOptions) -> None:
    options.process(rest)
    logger.info("Updating namespace %s", name)
    rest.patch(_instance_path(name), json=update_spec(options))


def list_namespaces(rest: RestClient) -> list[dict[str, Any]]:
    return rest.get(INSTANCES) or []


def get_namespace(rest: RestClient, name: str) -> dict[str, Any]:
    return rest.get(_instance_path(name)) or {}


def delete_namespace(rest: RestClient, name: str) -> None:
    logger.info("Deleting namespace %s", name)
    rest.delete(_instance_path(name))


@dataclass
class NamespaceList:
    """Result of ``namespace ls``."""

    namespaces: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> list[dict[str, Any]]:
        return self.namespaces

    def render(self) -> Table:
        table = Table(box=None, header_style="bold", padding=(0, 2), pad_edge=False)
        for column in ("Namespace", "Cluster", "Status"):
            table.add_column(column)
        for ns in self.namespaces:
            table.add_row(
                escape(str(ns.get("namespace", ""))),
                escape(str(ns.get("cluster", ""))),
                escape(str(ns.get("config_status", ""))),
            )
        return table


def _describe(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(_describe(v) for v in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}={_describe(v)}" for k, v in value.items())
    return str(value)


@dataclass
class NamespaceInfo:
    """Result of ``namespace info``."""

    name: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"namespace": self.name, **self.details}

    def render(self) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 2), pad_edge=False)
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Value", overflow="fold")
        table.add_row("Namespace:", escape(self.name))
        for key, value in self.details.items():
            if value in (None, "", [], {}):
                continue
            label = key.replace("_", " ").capitalize()
            table.add_row(f"{label}:", escape(_describe(value)))
        return table
