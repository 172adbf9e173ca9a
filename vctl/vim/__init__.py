"""
SOAP (vim25) helpers built on pyVmomi: connection, property collection and
inventory lookups.
"""
