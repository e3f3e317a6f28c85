"""File identifier for uniquely identifying directories by device and inode."""

import os
from typing import Any


class FileIdentifier:
    """Class for uniquely identifying files and directories by their device and inode.

    Used to make sure a directory reached through a followed symlink is processed at
    most once per walk. The combination of device ID and inode number uniquely
    identifies a file or directory in the filesystem.

    Attributes:
        device_id (int): The device ID from stat information.
        inode_number (int): The inode number from stat information.
    """

    def __init__(self, device_id: int, inode_number: int):
        """Initialize a FileIdentifier.

        Args:
            device_id: The device ID from stat information.
            inode_number: The inode number from stat information.
        """
        self.device_id = device_id
        self.inode_number = inode_number

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileIdentifier":
        return cls(st.st_dev, st.st_ino)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, FileIdentifier):
            return False
        return self.device_id == other.device_id and self.inode_number == other.inode_number

    def __hash__(self) -> int:
        return hash((self.device_id, self.inode_number))

    def __repr__(self) -> str:
        return f"FileIdentifier(device_id={self.device_id}, inode_number={self.inode_number})"
