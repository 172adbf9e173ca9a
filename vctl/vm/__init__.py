"""
Virtual machine commands.
"""
