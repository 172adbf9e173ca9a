"""
SOAP (vim25) connection handling through pyVmomi.
"""

import logging
import socket
import ssl

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim

from vctl.config import Settings
from vctl.exceptions import VSphereConnectionError

logger = logging.getLogger(__name__)


def ssl_context(insecure: bool) -> ssl.SSLContext:
    """
    Create the SSL context for vSphere connections.

    Certificate verification is only disabled when ``insecure`` is set.
    """
    if insecure:
        logger.warning(
            "TLS certificate verification is disabled (--insecure). "
            "Only use this with trusted lab servers."
        )
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx
    return ssl.create_default_context()


def connect(settings: Settings):
    """
    Log in to vCenter/ESXi.

    Args:
        settings: Resolved settings (URL, credentials, insecure)

    Returns:
        vim.ServiceInstance

    Raises:
        VSphereConnectionError: If login or the transport fails
    """
    endpoint = settings.endpoint()
    logger.info("Connecting to %s", endpoint)

    old_timeout = socket.getdefaulttimeout()
    socket.setdefaulttimeout(settings.timeout)
    try:
        si = SmartConnect(
            protocol=endpoint.scheme,
            host=endpoint.host,
            port=endpoint.port,
            path=endpoint.path,
            user=endpoint.username or "",
            pwd=endpoint.password or "",
            sslContext=ssl_context(settings.insecure),
        )
    except vim.fault.InvalidLogin as e:
        raise VSphereConnectionError(str(endpoint), e.msg or "invalid login") from e
    except (OSError, vim.fault.VimFault) as e:
        raise VSphereConnectionError(str(endpoint), str(e)) from e
    finally:
        socket.setdefaulttimeout(old_timeout)

    logger.debug("Connected to %s (%s)", endpoint, si.content.about.fullName)
    return si


def disconnect(si) -> None:
    """Log out, ignoring errors from an already expired session."""
    if si is None:
        return
    try:
        Disconnect(si)
    except Exception as e:
        logger.debug("Error during disconnect: %s", e)
