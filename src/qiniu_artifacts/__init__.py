"""Qiniu artifact storage backend for CI hosts.

Resolves, validates and registers a single Qiniu bucket as the host's
artifact storage.
"""

__version__ = "0.1.0"
