"""
Per-invocation access to the SOAP and REST endpoints.
"""

import logging

from vctl.config import Settings
from vctl.rest.client import RestClient
from vctl.vim import connection
from vctl.vim.finder import Finder

logger = logging.getLogger(__name__)


class Client:
    """
    Lazily opened connections for one command.

    The SOAP service instance and the REST session are only created when a
    command first asks for them, and both are closed on exit.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._si = None
        self._content = None
        self._rest: RestClient | None = None

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    @property
    def content(self):
        """vim.ServiceContent of the connected server."""
        if self._content is None:
            self._si = connection.connect(self.settings)
            self._content = self._si.RetrieveContent()
        return self._content

    @property
    def rest(self) -> RestClient:
        """REST client (session is created on first request)."""
        if self._rest is None:
            self._rest = RestClient(self.settings)
        return self._rest

    def finder(self, datacenter: str | None = None) -> Finder:
        """Finder rooted at ``datacenter`` or the configured default."""
        return Finder(self.content, datacenter or self.settings.datacenter)

    def close(self) -> None:
        if self._rest is not None:
            self._rest.close()
            self._rest = None
        if self._si is not None:
            connection.disconnect(self._si)
            self._si = None
            self._content = None
