"""
Custom exceptions for vctl with helpful error messages.
"""

from rich.markup import escape


class VctlError(Exception):
    """Base exception for vctl errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ConfigurationError(VctlError):
    """Configuration file and settings errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str, path: str = None):
        message = f"Invalid configuration file: {error_details}"
        if path:
            message = f"Invalid configuration file {path}: {error_details}"

        suggestion = (
            "Fix the configuration file. Supported keys:\n"
            "  url, username, password, insecure, datacenter, timeout\n"
            "  retry:\n"
            "    max_attempts: 3\n"
            "    initial_delay: 1.0"
        )
        super().__init__(message, suggestion)


class ConfigFileNotFoundError(ConfigurationError):
    """Explicitly requested configuration file does not exist."""

    def __init__(self, path: str):
        message = f"Configuration file not found: {path}"
        suggestion = (
            "Check the --config option or the VCTL_CONFIG environment variable:\n"
            f"  ls -l {path}"
        )
        super().__init__(message, suggestion)


class MissingConnectionError(ConfigurationError):
    """No vCenter/ESXi URL configured."""

    def __init__(self):
        message = "No vSphere URL configured."
        suggestion = (
            "Set the URL with one of:\n"
            "  vctl --url https://vcenter.example.com ...\n"
            "  export VCTL_URL=user:password@vcenter.example.com\n"
            "  url: vcenter.example.com   (in ~/.config/vctl/config.yaml)"
        )
        super().__init__(message, suggestion)


class VSphereConnectionError(VctlError):
    """Connecting or logging in to vSphere failed."""

    def __init__(self, url: str, error_message: str):
        message = f"Failed to connect to {url}: {error_message}"
        suggestion = (
            "This could be due to:\n"
            "  - Wrong host name or port\n"
            "  - Invalid username or password\n"
            "  - Untrusted server certificate\n\n"
            "Try:\n"
            "  1. Verify the URL and credentials\n"
            "  2. Use --insecure for lab servers with self-signed certificates"
        )
        super().__init__(message, suggestion)


class LookupError(VctlError):
    """Errors resolving inventory references."""

    pass


class ObjectNotFoundError(LookupError):
    """No inventory object matches the given reference."""

    def __init__(self, kind: str, reference: str):
        self.kind = kind
        self.reference = reference
        message = f"{kind} '{reference}' not found"
        suggestion = (
            "References can be a name, an inventory path or a managed object id:\n"
            "  --vm my-vm\n"
            "  --vm /DC0/vm/folder/my-vm\n"
            "  --vm vm-42\n\n"
            "Relative paths and names are searched under --datacenter when it is set."
        )
        super().__init__(message, suggestion)


class MultipleObjectsFoundError(LookupError):
    """A name matched more than one inventory object."""

    def __init__(self, kind: str, reference: str, count: int):
        self.kind = kind
        self.reference = reference
        self.count = count
        message = f"{kind} '{reference}' resolves to {count} objects"
        suggestion = (
            "Use an inventory path or managed object id to pick one:\n"
            f"  /<datacenter>/.../{reference}"
        )
        super().__init__(message, suggestion)


class RequestError(VctlError):
    """Errors building or issuing remote requests."""

    pass


class SpecDecodeError(RequestError):
    """A vim25 spec read from stdin could not be decoded."""

    def __init__(self, spec_type: str, error_details: str):
        message = f"Failed to decode {spec_type} from stdin: {error_details}"
        suggestion = (
            "Pipe a vim25 XML document of the expected type, for example:\n"
            "  vctl vm check relocate --vm my-vm < relocate-spec.xml"
        )
        super().__init__(message, suggestion)


class TaskFailedError(RequestError):
    """A vSphere task finished in the error state."""

    def __init__(self, task_name: str, error_message: str):
        message = f"{task_name} failed: {error_message}"
        super().__init__(message)


class RestAPIError(RequestError):
    """vSphere Automation REST call failed."""

    def __init__(self, method: str, path: str, status: int, error_message: str = None):
        self.method = method
        self.path = path
        self.status = status

        message = f"{method} {path} returned HTTP {status}"
        if error_message:
            message += f": {error_message}"

        suggestion = None
        if status == 401:
            suggestion = "Session expired or credentials rejected. Check --username/--password."
        elif status == 403:
            suggestion = "The user lacks the privileges for this operation."
        elif status == 404:
            suggestion = "The object does not exist or the API is not enabled on this server."
        super().__init__(message, suggestion)


class RetryableError(VctlError):
    """Error that should be retried."""

    def __init__(self, original_error: Exception, attempt: int, max_attempts: int):
        self.original_error = original_error
        self.attempt = attempt
        self.max_attempts = max_attempts

        message = f"Operation failed (attempt {attempt}/{max_attempts}): " f"{str(original_error)}"
        super().__init__(message)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, VctlError):
        # Custom errors have helpful messages and suggestions
        output = f"[red]Error:[/red] {escape(error.message)}"
        if error.suggestion:
            output += f"\n\n[yellow]{escape(error.suggestion)}[/yellow]"
        return output
    else:
        # Generic errors
        return f"[red]Error:[/red] {escape(str(error))}"
