"""
Shared utilities: logging, configuration and error normalization.
"""
