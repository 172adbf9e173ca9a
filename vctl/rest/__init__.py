"""
vSphere Automation REST API access.
"""

from vctl.rest.client import RestClient

__all__ = ["RestClient"]
