"""
Provisioning and compatibility checks.

The checks themselves run on the server: this module resolves the VM, host
and resource pool references, calls the compatibility or provisioning
checker, waits for the task and converts the ``CheckResult`` list into
records that can be printed as a table or a document.
"""

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pyVim.task import WaitForTask
from pyVmomi import vim, vmodl
from rich.markup import escape
from rich.table import Table

from vctl.exceptions import TaskFailedError
from vctl.vim.finder import Finder, inventory_path

logger = logging.getLogger(__name__)


class CheckTestType(str, Enum):
    """Check categories accepted by the checker services."""

    source = "sourceTests"
    host = "hostTests"
    resource_pool = "resourcePoolTests"
    datastore = "datastoreTests"
    network = "networkTests"


class CheckStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def style(self) -> str:
        return {"pass": "green", "warn": "yellow", "fail": "red"}[self.value]


@dataclass
class ObjectRef:
    """Managed object reference as type and id."""

    type: str
    value: str

    @classmethod
    def from_vim(cls, obj) -> "ObjectRef":
        return cls(type=getattr(obj, "_wsdlName", type(obj).__name__), value=obj._moId)

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "value": self.value}


@dataclass
class Fault:
    """One warning or error reported by a check."""

    message: str
    fault: str | None = None

    @classmethod
    def from_vim(cls, localized) -> "Fault":
        fault = getattr(localized, "fault", None)
        return cls(
            message=localized.localizedMessage or "",
            fault=getattr(fault, "_wsdlName", None) if fault is not None else None,
        )

    def to_dict(self) -> dict[str, str]:
        data = {"localizedMessage": self.message}
        if self.fault:
            data["fault"] = self.fault
        return data


def compact_messages(faults: list[Fault]) -> list[str]:
    """Localized messages with consecutive duplicates collapsed."""
    return [message for message, _ in itertools.groupby(f.message for f in faults)]


@dataclass
class CheckResult:
    """Outcome of a check for one VM/host pair."""

    vm: ObjectRef | None = None
    host: ObjectRef | None = None
    warnings: list[Fault] = field(default_factory=list)
    errors: list[Fault] = field(default_factory=list)
    vm_path: str = ""
    host_path: str = ""

    @property
    def status(self) -> CheckStatus:
        if self.errors:
            return CheckStatus.FAIL
        if self.warnings:
            return CheckStatus.WARN
        return CheckStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value}
        if self.vm is not None:
            data["vm"] = self.vm.to_dict()
            data["vmPath"] = self.vm_path
        if self.host is not None:
            data["host"] = self.host.to_dict()
            data["hostPath"] = self.host_path
        if self.warnings:
            data["warning"] = [w.to_dict() for w in self.warnings]
        if self.errors:
            data["error"] = [e.to_dict() for e in self.errors]
        return data


def convert_results(
    raw_results, path_of: Callable[[Any], str] = inventory_path
) -> list[CheckResult]:
    """
    Convert vim.vm.check.Result objects to CheckResult records.

    Args:
        raw_results: Result list from a checker task
        path_of: Function resolving a managed object to its inventory path

    Returns:
        CheckResult list in server order
    """
    results = []
    for raw in raw_results or []:
        result = CheckResult(
            warnings=[Fault.from_vim(w) for w in (raw.warning or [])],
            errors=[Fault.from_vim(e) for e in (raw.error or [])],
        )
        if raw.vm is not None:
            result.vm = ObjectRef.from_vim(raw.vm)
            result.vm_path = path_of(raw.vm)
        if raw.host is not None:
            result.host = ObjectRef.from_vim(raw.host)
            result.host_path = path_of(raw.host)
        results.append(result)
    return results


@dataclass
class CheckReport:
    """Result of the ``vm check`` commands."""

    results: list[CheckResult] = field(default_factory=list)

    @property
    def status(self) -> CheckStatus:
        statuses = {r.status for r in self.results}
        for status in (CheckStatus.FAIL, CheckStatus.WARN):
            if status in statuses:
                return status
        return CheckStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        return {"result": [r.to_dict() for r in self.results]}

    def render(self) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 2), pad_edge=False)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value", overflow="fold")

        for result in self.results:
            status = result.status
            table.add_row("Status:", f"[{status.style}]{status.name}[/{status.style}]")
            table.add_row("VM:", escape(result.vm_path))
            table.add_row("Host:", escape(result.host_path))
            table.add_row("Warning:", escape("\n".join(compact_messages(result.warnings))))
            table.add_row("Error:", escape("\n".join(compact_messages(result.errors))))
        return table


@dataclass
class CheckTarget:
    """Resolved --vm/--host/--pool references."""

    vm: Any = None
    host: Any = None
    pool: Any = None

    @classmethod
    def resolve(
        cls,
        finder: Finder,
        vm: str | None = None,
        host: str | None = None,
        pool: str | None = None,
    ) -> "CheckTarget":
        return cls(
            vm=finder.virtual_machine(vm),
            host=finder.host_system(host),
            pool=finder.resource_pool(pool),
        )


def wait_for_results(task, task_name: str):
    """Wait for a checker task and return its result list."""
    try:
        WaitForTask(task)
    except vmodl.MethodFault as e:
        raise TaskFailedError(task_name, e.msg or type(e).__name__) from e
    return task.info.result or []


def _test_types(tests: list[CheckTestType] | None) -> list[str] | None:
    if not tests:
        return None
    return [CheckTestType(t).value for t in tests]


def check_compatibility(
    content, target: CheckTarget, tests: list[CheckTestType] | None = None
):
    """Run CheckCompatibility for target.vm against target.host/pool."""
    checker = content.vmCompatibilityChecker
    logger.info("Checking compatibility of %s", target.vm)
    task = checker.CheckCompatibility_Task(
        vm=target.vm, host=target.host, pool=target.pool, testType=_test_types(tests)
    )
    return wait_for_results(task, "CheckCompatibility")


def check_vm_config(
    content,
    target: CheckTarget,
    spec: vim.vm.ConfigSpec,
    tests: list[CheckTestType] | None = None,
):
    """Run CheckVmConfig for a config spec; target.vm may be None."""
    checker = content.vmCompatibilityChecker
    task = checker.CheckVmConfig_Task(
        spec=spec,
        vm=target.vm,
        host=target.host,
        pool=target.pool,
        testType=_test_types(tests),
    )
    return wait_for_results(task, "CheckVmConfig")


def check_relocate(
    content,
    target: CheckTarget,
    spec: vim.vm.RelocateSpec,
    tests: list[CheckTestType] | None = None,
):
    """Run CheckRelocate; --host/--pool take precedence over the spec."""
    if target.host is not None:
        spec.host = target.host
    if target.pool is not None:
        spec.pool = target.pool

    checker = content.vmProvisioningChecker
    task = checker.CheckRelocate_Task(vm=target.vm, spec=spec, testType=_test_types(tests))
    return wait_for_results(task, "CheckRelocate")


def check_clone(
    content,
    target: CheckTarget,
    folder,
    name: str,
    spec: vim.vm.CloneSpec,
    tests: list[CheckTestType] | None = None,
):
    """Run CheckClone; the clone lands in ``folder`` (default: the VM's folder)."""
    if folder is None:
        folder = target.vm.parent

    if spec.location is None:
        spec.location = vim.vm.RelocateSpec()
    if target.host is not None:
        spec.location.host = target.host
    if target.pool is not None:
        spec.location.pool = target.pool

    checker = content.vmProvisioningChecker
    task = checker.CheckClone_Task(
        vm=target.vm, folder=folder, name=name, spec=spec, testType=_test_types(tests)
    )
    return wait_for_results(task, "CheckClone")
