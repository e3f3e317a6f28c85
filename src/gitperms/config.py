"""Run-time configuration for snapshotting and restoring permissions."""

import os
from dataclasses import dataclass
from typing import Tuple

from gitperms.exclusion_rules.git_rules import GitIgnoreExclusionRules
from gitperms.manifest import is_temporary_manifest

DEFAULT_MANIFEST_NAME = ".gitperms"


@dataclass(frozen=True)
class PermsConfig:
    """Immutable settings shared by every directory of a walk.

    Attributes:
        manifest_name: File name of the per-directory manifest.
        default_uid: Owner used when a manifest record has no "uid".
        default_gid: Group used when a manifest record has no "gid".
        default_dir_mode: Mode used for a "." record without "mode".
        default_file_mode: Mode used for a file record without "mode".
        ignore_dirs: Directory names that are never traversed.
        ignore_files: File names that are never captured or restored, in addition
            to the manifest itself.

    Example:
        >>> config = PermsConfig(ignore_files=("Thumbs.db",))
        >>> config.ignored_file_names
        ('Thumbs.db', '.gitperms')
        >>> oct(config.default_mode(is_directory=True))
        '0o755'
        >>> PermsConfig(manifest_name="a/b")
        Traceback (most recent call last):
        ...
        ValueError: Manifest name must be a plain file name: 'a/b'
    """

    manifest_name: str = DEFAULT_MANIFEST_NAME
    default_uid: int = 0
    default_gid: int = 0
    default_dir_mode: int = 0o755
    default_file_mode: int = 0o644
    ignore_dirs: Tuple[str, ...] = (".git",)
    ignore_files: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        name = self.manifest_name
        if not name or name in (".", "..") or os.sep in name or (os.altsep and os.altsep in name):
            raise ValueError(f"Manifest name must be a plain file name: {name!r}")
        for mode in (self.default_dir_mode, self.default_file_mode):
            if not 0 <= mode <= 0o7777:
                raise ValueError(f"Default mode out of range: {oct(mode)}")

    @property
    def ignored_file_names(self) -> Tuple[str, ...]:
        """File names excluded from manifests; always includes the manifest itself."""
        if self.manifest_name in self.ignore_files:
            return self.ignore_files
        return self.ignore_files + (self.manifest_name,)

    def is_reserved_file(self, name: str) -> bool:
        """Whether a file name is skipped regardless of any exclusion rules.

        Covers the ignored file names, the manifest itself and temporary files left
        by a manifest write.

        Example:
            >>> config = PermsConfig()
            >>> config.is_reserved_file(".gitperms"), config.is_reserved_file("a.txt")
            (True, False)
        """
        return name in self.ignored_file_names or is_temporary_manifest(name, self.manifest_name)

    def default_mode(self, is_directory: bool) -> int:
        return self.default_dir_mode if is_directory else self.default_file_mode

    def build_exclusion_rules(self) -> GitIgnoreExclusionRules:
        """Compile the configured ignore names into gitignore-style rules.

        Callers may add further patterns to the returned object before handing it
        to the walker.
        """
        return GitIgnoreExclusionRules.from_names(dirs=self.ignore_dirs, files=self.ignored_file_names)
