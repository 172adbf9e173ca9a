"""
Utility functions and helpers.

Modules:
- logging: Logging configuration with rich output and secret redaction
- redact: Credential redaction for log records and messages
- retry: Exponential backoff for transient REST failures
"""
