"""
Pytest configuration and shared fixtures.
"""

import logging
import os
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from vctl import config
from vctl.util.logging import LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the user's VCTL_*/GOVC_* variables and config file out of tests."""
    for name in list(os.environ):
        if name.startswith(config.ENV_PREFIXES) or name == "VCTL_CONFIG":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", tmp_path / "missing" / "config.yaml")


@pytest.fixture
def inventory():
    """A small inventory tree: root folder, datacenter, host folder, cluster, host."""
    root = SimpleNamespace(name="Datacenters", parent=None)
    dc = SimpleNamespace(name="DC0", parent=root)
    host_folder = SimpleNamespace(name="host", parent=dc)
    vm_folder = SimpleNamespace(name="vm", parent=dc)
    cluster = SimpleNamespace(name="cluster1", parent=host_folder)
    host = SimpleNamespace(name="esx-01", parent=cluster)
    vm = SimpleNamespace(name="web-01", parent=vm_folder)
    return SimpleNamespace(
        root=root,
        dc=dc,
        host_folder=host_folder,
        vm_folder=vm_folder,
        cluster=cluster,
        host=host,
        vm=vm,
    )


@pytest.fixture
def fake_client():
    """Client stand-in usable as a context manager."""
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    client.settings = config.Settings(url="vc.example.com")
    return client


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() so caplog keeps seeing vctl records."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
