"""
Host commands.
"""
