"""
Decode vim25 specs piped to the check commands.
"""

import logging
from typing import IO

from pyVmomi import SoapAdapter, vim

from vctl.exceptions import SpecDecodeError

logger = logging.getLogger(__name__)

SPEC_TYPES = {
    "config": vim.vm.ConfigSpec,
    "relocate": vim.vm.RelocateSpec,
    "clone": vim.vm.CloneSpec,
}


def decode_spec(data: str, spec_type):
    """
    Deserialize a vim25 XML document into ``spec_type``.

    Blank input yields an empty spec.

    Raises:
        SpecDecodeError: The document is not well-formed or has the wrong shape
    """
    type_name = spec_type.__name__
    if not data.strip():
        logger.debug("No %s on stdin, using an empty spec", type_name)
        return spec_type()

    try:
        spec = SoapAdapter.Deserialize(data.encode("utf-8"), spec_type)
    except Exception as e:
        raise SpecDecodeError(type_name, str(e)) from e

    if not isinstance(spec, spec_type):
        raise SpecDecodeError(
            type_name, f"document decodes to {type(spec).__name__}, not {type_name}"
        )
    return spec


def read_spec(stream: IO[str], spec_type):
    """Read and decode a spec from ``stream``; a terminal counts as no input."""
    if stream.isatty():
        return spec_type()
    return decode_spec(stream.read(), spec_type)
