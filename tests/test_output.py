"""
Tests for output formats.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import yaml

from vctl.output import OutputFormat, format_time, to_json, to_yaml, write_result

VERIFIED = datetime(2024, 3, 1, 12, 30, 5, tzinfo=timezone.utc)


class FakeResult:
    def to_dict(self):
        return [{"name": "esx-01", "time": VERIFIED}]

    def render(self):
        return "rendered table"


class TestFormatTime:
    """Tests for timestamp formatting."""

    def test_utc(self):
        assert format_time(VERIFIED) == "2024-03-01T12:30:05Z"

    def test_offset(self):
        value = datetime(2024, 3, 1, 12, 30, 5, tzinfo=timezone(timedelta(hours=2)))

        assert format_time(value) == "2024-03-01T12:30:05+02:00"

    def test_naive_and_none(self):
        assert format_time(datetime(2024, 3, 1, 12, 30, 5)) == "2024-03-01T12:30:05"
        assert format_time(None) == ""


class TestSerializers:
    """Tests for JSON and YAML output."""

    def test_json(self):
        data = json.loads(to_json({"attestation": {"time": VERIFIED}}))

        assert data == {"attestation": {"time": "2024-03-01T12:30:05Z"}}

    def test_yaml_keeps_key_order(self):
        """Test that YAML output keeps insertion order and plain timestamps."""
        text = to_yaml({"status": "pass", "vm": "vm-1", "time": VERIFIED})

        assert text.index("status") < text.index("vm") < text.index("time")
        assert yaml.safe_load(text)["time"] == "2024-03-01T12:30:05Z"


class TestWriteResult:
    """Tests for write_result()."""

    def test_table(self):
        console = MagicMock()

        write_result(FakeResult(), OutputFormat.table, console)

        console.print.assert_called_once_with("rendered table")

    def test_json(self, capsys):
        write_result(FakeResult(), OutputFormat.json, MagicMock())

        assert json.loads(capsys.readouterr().out) == [
            {"name": "esx-01", "time": "2024-03-01T12:30:05Z"}
        ]

    def test_yaml(self, capsys):
        console = MagicMock()

        write_result(FakeResult(), OutputFormat.yaml, console)

        assert yaml.safe_load(capsys.readouterr().out)[0]["name"] == "esx-01"
        console.print.assert_not_called()
