"""Node recording the outcome of processing one directory."""

from typing import Any, Optional

from anytree import Node


class DirectoryNode(Node):  # type: ignore
    """Node class representing a directory visited by a walk.

    Extends anytree.Node with the counters gathered while the directory's manifest
    was captured or applied, so that a finished walk can be inspected or summarised
    with anytree's traversal helpers.

    Attributes:
        name (str): The directory's base name (the full path for the root).
        dir_path (str): The directory's path as visited by the walker.
        file_count (int): File entries captured or checked, not counting ".".
        changed_count (int): Entries whose metadata differed from the manifest.
        children (tuple[DirectoryNode]): Subdirectories visited (inherited from anytree.Node).

    Example:
        >>> root = DirectoryNode("/srv", dir_path="/srv", file_count=3)
        >>> sub = DirectoryNode("www", parent=root, dir_path="/srv/www", changed_count=1)
        >>> sub.parent is root
        True
        >>> sum(node.changed_count for node in root.descendants)
        1
    """

    def __init__(
        self,
        name: str,
        parent: Optional["DirectoryNode"] = None,
        dir_path: str = "",
        file_count: int = 0,
        changed_count: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, parent, **kwargs)
        self.dir_path = dir_path
        self.file_count = file_count
        self.changed_count = changed_count
