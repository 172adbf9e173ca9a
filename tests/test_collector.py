"""
Tests for container view property collection.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from pyVmomi import vim

from vctl.vim.collector import retrieve


def object_content(obj, **props):
    prop_set = [SimpleNamespace(name=k.replace("__", "."), val=v) for k, v in props.items()]
    return SimpleNamespace(obj=obj, propSet=prop_set)


@pytest.fixture
def content():
    content = MagicMock()
    with patch("vctl.vim.collector.PropertyCollector"):
        yield content


class TestRetrieve:
    """Tests for retrieve()."""

    def test_single_page(self, content):
        """Test that properties are keyed by path with the object under ``obj``."""
        host = object()
        pc = content.propertyCollector
        pc.RetrievePropertiesEx.return_value = SimpleNamespace(
            objects=[object_content(host, name="esx-01", capability__tpmSupported=True)],
            token=None,
        )

        result = retrieve(content, content.rootFolder, vim.HostSystem, ["name"])

        assert result == [{"obj": host, "name": "esx-01", "capability.tpmSupported": True}]
        pc.ContinueRetrievePropertiesEx.assert_not_called()
        content.viewManager.CreateContainerView.assert_called_once_with(
            content.rootFolder, [vim.HostSystem], True
        )

    def test_continuation_token(self, content):
        """Test that all pages are collected."""
        pc = content.propertyCollector
        pc.RetrievePropertiesEx.return_value = SimpleNamespace(
            objects=[object_content("a", name="vm-a")], token="page-2"
        )
        pc.ContinueRetrievePropertiesEx.return_value = SimpleNamespace(
            objects=[object_content("b", name="vm-b")], token=None
        )

        result = retrieve(content, content.rootFolder, vim.VirtualMachine, ["name"])

        assert [r["name"] for r in result] == ["vm-a", "vm-b"]
        pc.ContinueRetrievePropertiesEx.assert_called_once_with(token="page-2")

    def test_unset_properties_are_absent(self, content):
        content.propertyCollector.RetrievePropertiesEx.return_value = SimpleNamespace(
            objects=[SimpleNamespace(obj="a", propSet=None)], token=None
        )

        result = retrieve(content, content.rootFolder, vim.HostSystem, ["name"])

        assert result == [{"obj": "a"}]

    def test_empty_result(self, content):
        """Test that no matching objects gives an empty list."""
        content.propertyCollector.RetrievePropertiesEx.return_value = None

        assert retrieve(content, content.rootFolder, vim.HostSystem, ["name"]) == []

    def test_view_destroyed_on_error(self, content):
        """Test that the container view is released when collection fails."""
        view = content.viewManager.CreateContainerView.return_value
        content.propertyCollector.RetrievePropertiesEx.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            retrieve(content, content.rootFolder, vim.HostSystem, ["name"])

        view.Destroy.assert_called_once()
