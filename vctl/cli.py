"""
CLI entry point for vctl.
"""

import logging
import sys
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from vctl import __version__
from vctl.client import Client
from vctl.config import load_settings
from vctl.exceptions import VctlError, format_error_for_cli
from vctl.host import tpm
from vctl.namespace import service as namespaces
from vctl.namespace.options import NamespaceOptions
from vctl.output import OutputFormat, write_result
from vctl.util.logging import configure_logging
from vctl.vm import check
from vctl.vm.spec import SPEC_TYPES, read_spec

app = typer.Typer(
    name="vctl",
    help="vSphere provisioning checks, host TPM state and namespace management",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except VctlError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
            console.print("\n[yellow]Re-run with --debug for a traceback.[/yellow]")
            raise typer.Exit(1)

    return wrapper


host_app = typer.Typer(help="Host commands")
app.add_typer(host_app, name="host")

tpm_app = typer.Typer(help="Trusted Platform Module commands")
host_app.add_typer(tpm_app, name="tpm")

vm_app = typer.Typer(help="Virtual machine commands")
app.add_typer(vm_app, name="vm")

check_app = typer.Typer(help="Provisioning and compatibility checks")
vm_app.add_typer(check_app, name="check")

namespace_app = typer.Typer(help="vSphere Namespace commands")
app.add_typer(namespace_app, name="namespace")


def _version_callback(value: bool):
    if value:
        typer.echo(f"vctl {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    url: str | None = typer.Option(
        None, "--url", help="vCenter/ESXi URL [env: VCTL_URL]", show_default=False
    ),
    username: str | None = typer.Option(None, "--username", "-u", help="[env: VCTL_USERNAME]"),
    password: str | None = typer.Option(None, "--password", help="[env: VCTL_PASSWORD]"),
    insecure: bool | None = typer.Option(
        None, "--insecure/--secure", help="Skip TLS certificate verification [env: VCTL_INSECURE]"
    ),
    datacenter: str | None = typer.Option(
        None, "--datacenter", "--dc", help="Default datacenter [env: VCTL_DATACENTER]"
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: ~/.config/vctl/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress messages"),
    debug: bool = typer.Option(False, "--debug", help="Show debug messages and tracebacks"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
):
    """vSphere provisioning checks, host TPM state and namespace management."""
    configure_logging(verbose=verbose, debug=debug)
    ctx.obj = {
        "overrides": {
            "url": url,
            "username": username,
            "password": password,
            "insecure": insecure,
            "datacenter": datacenter,
        },
        "config_path": config,
    }


def open_client(ctx: typer.Context) -> Client:
    """Create a Client from the root options, environment and config file."""
    state = ctx.obj or {}
    settings = load_settings(state.get("overrides"), config_path=state.get("config_path"))
    return Client(settings)


FORMAT_OPTION = typer.Option(OutputFormat.table, "--format", "-f", help="Output format")


# ---------------------------------------------------------------------------
# host tpm
# ---------------------------------------------------------------------------


@tpm_app.command("info")
@handle_errors
def tpm_info(
    ctx: typer.Context,
    datacenter: str | None = typer.Option(
        None, "--datacenter", "--dc", help="Limit to hosts in this datacenter"
    ),
    format: OutputFormat = FORMAT_OPTION,
):
    """
    Trusted Platform Module summary.

    Examples:
      vctl host tpm info
      vctl host tpm info --format json
    """
    with open_client(ctx) as client:
        root = None
        if datacenter or client.settings.datacenter:
            root = client.finder(datacenter).datacenter
        modules = tpm.host_trusted_platform_modules(client.content, root)

    write_result(tpm.TpmReport(modules), format, console)


# ---------------------------------------------------------------------------
# vm check
# ---------------------------------------------------------------------------

VM_OPTION = typer.Option(
    ..., "--vm", envvar="VCTL_VM", help="Virtual machine name, inventory path or id"
)
HOST_OPTION = typer.Option(
    None, "--host", envvar="VCTL_HOST", help="Host name, inventory path or id"
)
POOL_OPTION = typer.Option(
    None, "--pool", envvar="VCTL_RESOURCE_POOL", help="Resource pool name, inventory path or id"
)
TEST_OPTION = typer.Option(None, "--test", help="Check category to run (repeatable)")


def _run_check(ctx: typer.Context, vm, host, pool, format: OutputFormat, call) -> None:
    with open_client(ctx) as client:
        finder = client.finder()
        target = check.CheckTarget.resolve(finder, vm=vm, host=host, pool=pool)
        raw = call(client.content, finder, target)
        results = check.convert_results(raw)

    report = check.CheckReport(results)
    logger.info("Check finished with status %s", report.status.name)
    write_result(report, format, console)


@check_app.command("compat")
@handle_errors
def check_compat(
    ctx: typer.Context,
    vm: str = VM_OPTION,
    host: str | None = HOST_OPTION,
    pool: str | None = POOL_OPTION,
    test: list[check.CheckTestType] | None = TEST_OPTION,
    format: OutputFormat = FORMAT_OPTION,
):
    """
    Check if the VM can be placed on the given host/pool.

    Examples:
      vctl vm check compat --vm web-01 --host esx-02
      vctl vm check compat --vm web-01 --pool gold --test hostTests
    """

    def call(content, finder, target):
        return check.check_compatibility(content, target, test)

    _run_check(ctx, vm, host, pool, format, call)


@check_app.command("config")
@handle_errors
def check_config(
    ctx: typer.Context,
    vm: str | None = typer.Option(
        None, "--vm", envvar="VCTL_VM", help="Virtual machine name, inventory path or id"
    ),
    host: str | None = HOST_OPTION,
    pool: str | None = POOL_OPTION,
    test: list[check.CheckTestType] | None = TEST_OPTION,
    format: OutputFormat = FORMAT_OPTION,
):
    """
    Check a VirtualMachineConfigSpec read from stdin.

    Examples:
      vctl vm check config --host esx-02 < config-spec.xml
    """
    spec = read_spec(sys.stdin, SPEC_TYPES["config"])

    def call(content, finder, target):
        return check.check_vm_config(content, target, spec, test)

    _run_check(ctx, vm, host, pool, format, call)


@check_app.command("relocate")
@handle_errors
def check_relocate(
    ctx: typer.Context,
    vm: str = VM_OPTION,
    host: str | None = HOST_OPTION,
    pool: str | None = POOL_OPTION,
    test: list[check.CheckTestType] | None = TEST_OPTION,
    format: OutputFormat = FORMAT_OPTION,
):
    """
    Check a VirtualMachineRelocateSpec read from stdin.

    --host and --pool override the host and pool of the spec.

    Examples:
      vctl vm check relocate --vm web-01 --host esx-02
      vctl vm check relocate --vm web-01 < relocate-spec.xml
    """
    spec = read_spec(sys.stdin, SPEC_TYPES["relocate"])

    def call(content, finder, target):
        return check.check_relocate(content, target, spec, test)

    _run_check(ctx, vm, host, pool, format, call)


@check_app.command("clone")
@handle_errors
def check_clone(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Name of the clone"),
    vm: str = VM_OPTION,
    folder: str | None = typer.Option(
        None, "--folder", help="Destination folder (default: the VM's folder)"
    ),
    host: str | None = HOST_OPTION,
    pool: str | None = POOL_OPTION,
    test: list[check.CheckTestType] | None = TEST_OPTION,
    format: OutputFormat = FORMAT_OPTION,
):
    """
    Check a VirtualMachineCloneSpec read from stdin.

    Examples:
      vctl vm check clone --vm template-01 --name web-03 --pool gold
    """
    spec = read_spec(sys.stdin, SPEC_TYPES["clone"])

    def call(content, finder, target):
        return check.check_clone(content, target, finder.folder(folder), name, spec, test)

    _run_check(ctx, vm, host, pool, format, call)


# ---------------------------------------------------------------------------
# namespace
# ---------------------------------------------------------------------------

LIBRARY_OPTION = typer.Option(
    None, "--library", help="Content library name or id to associate (repeatable)"
)
VMCLASS_OPTION = typer.Option(
    None, "--vmclass", help="Virtual machine class id to associate (repeatable)"
)
STORAGE_OPTION = typer.Option(
    None, "--storage", help="Storage policy name or id to associate (repeatable)"
)


def _namespace_options(library, vmclass, storage) -> NamespaceOptions:
    return NamespaceOptions(
        libraries=list(library or []),
        vm_classes=list(vmclass or []),
        storage_policies=list(storage or []),
    )


@namespace_app.command("create")
@handle_errors
def namespace_create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Namespace name"),
    supervisor: str = typer.Option(..., "--supervisor", help="Supervisor cluster id"),
    library: list[str] | None = LIBRARY_OPTION,
    vmclass: list[str] | None = VMCLASS_OPTION,
    storage: list[str] | None = STORAGE_OPTION,
):
    """
    Create a vSphere Namespace.

    Examples:
      vctl namespace create dev --supervisor domain-c1 --library vmsvc --storage "vSAN Default"
    """
    options = _namespace_options(library, vmclass, storage)
    with open_client(ctx) as client:
        namespaces.create_namespace(client.rest, name, supervisor, options)
    console.print(f"[green]✓ Created namespace {escape(name)}[/green]")


@namespace_app.command("update")
@handle_errors
def namespace_update(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Namespace name"),
    library: list[str] | None = LIBRARY_OPTION,
    vmclass: list[str] | None = VMCLASS_OPTION,
    storage: list[str] | None = STORAGE_OPTION,
):
    """
    Update the libraries, VM classes and storage policies of a namespace.

    Examples:
      vctl namespace update dev --vmclass best-effort-small --storage gold
    """
    options = _namespace_options(library, vmclass, storage)
    with open_client(ctx) as client:
        namespaces.update_namespace(client.rest, name, options)
    console.print(f"[green]✓ Updated namespace {escape(name)}[/green]")


@namespace_app.command("ls")
@handle_errors
def namespace_ls(ctx: typer.Context, format: OutputFormat = FORMAT_OPTION):
    """List vSphere Namespaces."""
    with open_client(ctx) as client:
        items = namespaces.list_namespaces(client.rest)
    write_result(namespaces.NamespaceList(items), format, console)


@namespace_app.command("info")
@handle_errors
def namespace_info(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Namespace name"),
    format: OutputFormat = FORMAT_OPTION,
):
    """Show a vSphere Namespace."""
    with open_client(ctx) as client:
        details = namespaces.get_namespace(client.rest, name)
    write_result(namespaces.NamespaceInfo(name, details), format, console)


@namespace_app.command("rm")
@handle_errors
def namespace_rm(ctx: typer.Context, name: str = typer.Argument(..., help="Namespace name")):
    """Delete a vSphere Namespace."""
    with open_client(ctx) as client:
        namespaces.delete_namespace(client.rest, name)
    console.print(f"[green]✓ Deleted namespace {escape(name)}[/green]")


if __name__ == "__main__":
    app()
