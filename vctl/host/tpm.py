"""
Trusted Platform Module summary for ESXi hosts.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pyVmomi import vim
from rich.markup import escape
from rich.table import Table

from vctl.output import format_time
from vctl.vim.collector import retrieve

logger = logging.getLogger(__name__)

HOST_PROPERTIES = [
    "name",
    "summary.tpmAttestation",
    "summary.runtime.stateEncryption",
    "capability.tpmSupported",
    "capability.tpmVersion",
    "capability.txtEnabled",
]

TABLE_COLUMNS = ["Name", "Attestation", "Last Verified", "TPM version", "TXT", "Message"]

NOT_AVAILABLE = "N/A"


@dataclass
class TpmAttestation:
    status: str
    time: datetime | None = None
    message: str | None = None

    @classmethod
    def from_vim(cls, info) -> "TpmAttestation":
        message = getattr(info, "message", None)
        return cls(
            status=str(info.status),
            time=info.time,
            message=getattr(message, "message", None) if message is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status, "time": self.time}
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class StateEncryption:
    protection_mode: str | None = None
    require_secure_boot: bool | None = None
    require_exec_installed_only: bool | None = None

    @classmethod
    def from_vim(cls, info) -> "StateEncryption":
        return cls(
            protection_mode=getattr(info, "protectionMode", None),
            require_secure_boot=getattr(info, "requireSecureBoot", None),
            require_exec_installed_only=getattr(info, "requireExecInstalledOnly", None),
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "protectionMode": self.protection_mode,
            "requireSecureBoot": self.require_secure_boot,
            "requireExecInstalledOnly": self.require_exec_installed_only,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class TrustedPlatformModule:
    """TPM state of one host."""

    name: str
    supported: bool = False
    version: str = ""
    txt_enabled: bool = False
    attestation: TpmAttestation | None = None
    state_encryption: StateEncryption | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "supported": self.supported}
        if self.version:
            data["version"] = self.version
        if self.txt_enabled:
            data["txtEnabled"] = self.txt_enabled
        if self.attestation is not None:
            data["attestation"] = self.attestation.to_dict()
        if self.state_encryption is not None:
            data["stateEncryption"] = self.state_encryption.to_dict()
        return data

    def row(self) -> list[str]:
        if not self.supported:
            return [self.name, NOT_AVAILABLE, NOT_AVAILABLE, NOT_AVAILABLE, NOT_AVAILABLE, ""]

        if self.attestation is None:
            status, verified, message = NOT_AVAILABLE, NOT_AVAILABLE, ""
        else:
            status = self.attestation.status
            verified = format_time(self.attestation.time)
            message = self.attestation.message or ""

        return [
            self.name,
            status,
            verified,
            self.version,
            str(self.txt_enabled).lower(),
            message,
        ]


def _flag(value: bool | None) -> bool:
    return bool(value) if value is not None else False


def from_properties(props: dict[str, Any]) -> TrustedPlatformModule:
    """Build a TrustedPlatformModule from collected host properties."""
    module = TrustedPlatformModule(name=props.get("name", ""))

    attestation = props.get("summary.tpmAttestation")
    if attestation is not None:
        module.attestation = TpmAttestation.from_vim(attestation)

    state_encryption = props.get("summary.runtime.stateEncryption")
    if state_encryption is not None:
        module.state_encryption = StateEncryption.from_vim(state_encryption)

    module.supported = _flag(props.get("capability.tpmSupported"))
    module.version = props.get("capability.tpmVersion") or ""
    module.txt_enabled = _flag(props.get("capability.txtEnabled"))
    return module


def host_trusted_platform_modules(content, root=None) -> list[TrustedPlatformModule]:
    """
    Collect the TPM summary of every host below ``root``.

    Args:
        content: vim.ServiceContent
        root: Datacenter or folder to search; defaults to the root folder

    Returns:
        One TrustedPlatformModule per host, in collection order
    """
    if root is None:
        root = content.rootFolder

    hosts = retrieve(content, root, vim.HostSystem, HOST_PROPERTIES)
    logger.info("Collected TPM state for %d host(s)", len(hosts))
    return [from_properties(props) for props in hosts]


@dataclass
class TpmReport:
    """Result of ``host tpm info``."""

    modules: list[TrustedPlatformModule] = field(default_factory=list)

    def to_dict(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.modules]

    def render(self) -> Table:
        table = Table(box=None, header_style="bold", padding=(0, 2), pad_edge=False)
        for column in TABLE_COLUMNS:
            table.add_column(column, overflow="fold")
        for module in self.modules:
            table.add_row(*(escape(cell) for cell in module.row()))
        return table
