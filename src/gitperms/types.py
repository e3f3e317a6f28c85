from enum import Enum
from os import PathLike
from typing import Union

# Complete path type including strings and any path-like object
PathType = Union[str, PathLike[str]]


class WalkMode(str, Enum):
    """Operation applied to every directory during a walk.

    Attributes:
        SAVE: Capture current metadata into each directory's manifest.
        RESTORE: Apply each directory's manifest back onto the filesystem.
        COMPARE: Report differences against each manifest without changing anything.
    """

    SAVE = "save"
    RESTORE = "restore"
    COMPARE = "compare"
