"""
vSphere Namespace commands.
"""

from vctl.namespace.options import NamespaceOptions

__all__ = ["NamespaceOptions"]
