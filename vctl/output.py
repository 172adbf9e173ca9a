"""
Result writers for table, JSON and YAML output.

Every command hands its result to write_result(); results implement
``to_dict()`` for structured output and ``render()`` for the rich table.
"""

import json
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Protocol

import typer
import yaml
from rich.console import Console, RenderableType


class OutputFormat(str, Enum):
    """Supported --format values."""

    table = "table"
    json = "json"
    yaml = "yaml"


class Result(Protocol):
    def to_dict(self) -> Any: ...

    def render(self) -> RenderableType: ...


def format_time(value: datetime | None) -> str:
    """RFC 3339 timestamp; UTC is written with a ``Z`` suffix."""
    if value is None:
        return ""
    if value.tzinfo is not None and value.utcoffset() == timedelta(0):
        return value.replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
    return value.isoformat(timespec="seconds")


def _plain(value: Any) -> Any:
    """Convert datetimes recursively so JSON and YAML agree."""
    if isinstance(value, datetime):
        return format_time(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_json(data: Any) -> str:
    return json.dumps(_plain(data), indent=2)


def to_yaml(data: Any) -> str:
    return yaml.safe_dump(_plain(data), default_flow_style=False, sort_keys=False)


def write_result(result: Result, fmt: OutputFormat, console: Console) -> None:
    """
    Write a command result to stdout.

    Args:
        result: Object with to_dict() and render()
        fmt: Output format
        console: Console used for table output
    """
    if fmt == OutputFormat.json:
        typer.echo(to_json(result.to_dict()))
    elif fmt == OutputFormat.yaml:
        typer.echo(to_yaml(result.to_dict()), nl=False)
    else:
        console.print(result.render())
