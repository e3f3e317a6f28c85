"""Directory walk that captures and applies permission manifests.

This package provides the PermissionWalker, which visits every directory of a tree
and saves, restores or compares its manifest, together with the small types it
relies on for loop detection, error policy and result reporting.
"""

from .directory_node import DirectoryNode
from .permission_action import PermissionAction
from .permission_walker import PermissionWalker

__all__ = [
    "DirectoryNode",
    "PermissionAction",
    "PermissionWalker",
]
