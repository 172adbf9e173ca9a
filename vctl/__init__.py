"""
vctl: vSphere inventory checks from the command line.

Commands:
- vm check: provisioning and compatibility checks (compat, config, relocate, clone)
- host tpm info: Trusted Platform Module attestation summary
- namespace: vSphere Namespace management with name-to-id resolution
"""

__version__ = "0.1.0"
