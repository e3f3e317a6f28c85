"""Snapshot and restore Unix ownership and permission bits for a directory tree.

This package records the owner, group and mode of every directory and regular
file in a tree into one small JSON manifest per directory, so that metadata a
version-control system or archive transfer would drop can be restored later.
"""

from importlib.metadata import PackageNotFoundError, version

# Expose the version for both programmatic use and CLI
try:
    __version__ = version("gitperms")
except PackageNotFoundError:
    __version__ = "unknown"
