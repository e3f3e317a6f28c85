"""Capture, apply and compare permission manifests across a directory tree.

This module provides the PermissionWalker class. It walks a directory tree in
pre-order and, for every directory, either writes the directory's manifest from the
current filesystem metadata or applies the manifest back onto the filesystem.
"""

import os
import stat
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Set, Tuple

from anytree import PreOrderIter

from gitperms.config import PermsConfig
from gitperms.exceptions import ReadError, StatError
from gitperms.exclusion_rules.base_rules import BaseExclusionRules
from gitperms.manifest import DIRECTORY_KEY, DirectoryManifest, PermissionRecord
from gitperms.permission_tree.directory_node import DirectoryNode
from gitperms.permission_tree.file_identifier import FileIdentifier
from gitperms.permission_tree.permission_action import PermissionAction
from gitperms.types import PathType, WalkMode

# Bits that chown() may clear on a regular file
_PRIVILEGE_BITS = stat.S_ISUID | stat.S_ISGID


class PermissionWalker:
    """Walks a directory tree saving, restoring or comparing permission manifests.

    Every operation is a generator of console lines (each ending in a newline). The
    work happens as the generator is consumed, so output can be streamed while the
    tree is processed.

    The walk is a pre-order traversal driven by an explicit stack, so very deep trees
    do not hit the interpreter's recursion limit. Children are visited in name order.
    Every processed directory is recorded as a DirectoryNode; the resulting tree and
    the summary counters are available once the walk has finished.

    Symbolic Link Behavior:
        Symlinks are never captured and never modified. Symlinks to directories are
        not traversed unless follow_symlinks is True, in which case each directory is
        processed at most once per walk to prevent loops.

    Permission Handling:
        A PermissionError from chown or chmod while restoring is handled according to
        permission_action:
        - RAISE (default): Propagate the error and abort the walk
        - WARN: Emit a warning line and continue
        - IGNORE: Continue silently

    Attributes:
        root_path (Path): The directory the walk starts from.
        config (PermsConfig): Manifest name, defaults and ignore names.
        exclusion_rules (BaseExclusionRules): Rules deciding which directories and
            files are skipped; built from config when not given.
        permission_action (PermissionAction): How to handle refused chown/chmod calls.
        follow_symlinks (bool): Whether to traverse symlinks to directories.

    Example:
        >>> walker = PermissionWalker("/srv/www")  # doctest: +SKIP
        >>> for line in walker.walk(WalkMode.COMPARE):  # doctest: +SKIP
        ...     print(line, end="")
        /srv/www/index.html : Current 0:0 600, Saved 0:0 644 (mode)
        >>> walker.changed_count  # doctest: +SKIP
        1
    """

    def __init__(
        self,
        root_path: PathType,
        config: Optional[PermsConfig] = None,
        exclusion_rules: Optional[BaseExclusionRules] = None,
        permission_action: PermissionAction = PermissionAction.RAISE,
        follow_symlinks: bool = False,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> None:
        """Initialize a PermissionWalker.

        Args:
            root_path: Directory to start from. Can be any path-like object.
            config: Walk configuration. Defaults to PermsConfig().
            exclusion_rules: Rules for skipping directories and files. Defaults to the
                rules compiled from config's ignore names.
            permission_action: How to handle chown/chmod permission errors.
                Defaults to RAISE.
            follow_symlinks: Whether to traverse symlinks to directories.
                Defaults to False.
            should_stop: Optional callable checked before each directory; the walk
                ends early once it returns True.
        """
        self.root_path = Path(root_path)
        self.config = config if config is not None else PermsConfig()
        self.exclusion_rules = (
            exclusion_rules if exclusion_rules is not None else self.config.build_exclusion_rules()
        )
        self.permission_action = PermissionAction(permission_action)
        self.follow_symlinks = follow_symlinks
        self.should_stop = should_stop
        self._tree: Optional[DirectoryNode] = None
        self._directory_count = 0
        self._file_count = 0
        self._changed_count = 0

    @property
    def directory_count(self) -> int:
        """Number of directories processed, including the root."""
        return self._directory_count

    @property
    def file_count(self) -> int:
        """Number of file entries captured or checked."""
        return self._file_count

    @property
    def changed_count(self) -> int:
        """Number of entries (files and directories) whose metadata differed."""
        return self._changed_count

    def get_tree(self) -> Optional[DirectoryNode]:
        """Return the root of the tree of processed directories, or None before a walk."""
        return self._tree

    def changed_directories(self) -> List[DirectoryNode]:
        """Directories of the last walk with at least one differing entry, in walk order."""
        if self._tree is None:
            return []
        return list(PreOrderIter(self._tree, filter_=lambda node: node.changed_count > 0))

    def manifest_path(self, directory: PathType) -> Path:
        return Path(directory) / self.config.manifest_name

    def capture(self, directory: PathType, dry_run: bool = False) -> Iterator[str]:
        """Record the current metadata of a directory and its files into its manifest.

        Only the directory itself (key ".") and the regular files directly inside it
        are captured; subdirectories get their own manifest when the walk reaches them.
        Symlinks and ignored names are left out.

        Args:
            directory: Directory to capture.
            dry_run: If True, build the manifest but don't write it.

        Yields:
            A single progress line naming the directory.

        Raises:
            StatError: If the directory or one of its files cannot be stat'ed.
            ReadError: If the directory cannot be listed.
        """
        directory = Path(directory)
        manifest = DirectoryManifest()
        manifest.add(DIRECTORY_KEY, PermissionRecord.from_stat(self._stat(directory)))

        for entry in self._list(directory):
            if not self._is_regular_file(entry) or self._excluded(directory, entry.name):
                continue
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError as e:
                raise StatError(entry.path, e.strerror or str(e)) from e
            manifest.add(entry.name, PermissionRecord.from_stat(st))
            self._file_count += 1

        if not dry_run:
            manifest.save(self.manifest_path(directory))

        yield f"Saved permissions for {directory}\n"

    def apply(self, directory: PathType, compare_only: bool = False, dry_run: bool = False) -> Iterator[str]:
        """Bring the metadata of a directory and its files in line with its manifest.

        A directory without a manifest is left alone. Entries whose file no longer
        exists, is now a symlink, or is ignored are skipped without output. Fields
        missing from a record are taken from the configured defaults.

        Owner, group and mode are compared and applied independently. One line is
        yielded per entry that differs; entries that match produce no output.

        Args:
            directory: Directory whose manifest should be applied.
            compare_only: If True, only report differences; nothing is changed.
            dry_run: If True, report exactly what a restore would print but change nothing.

        Yields:
            One line per changed entry, followed by any permission warnings.

        Raises:
            StatError: If an existing entry cannot be stat'ed.
            ManifestFormatError: If the manifest cannot be parsed.
            PermissionError: If chown/chmod is refused and permission_action is RAISE.
        """
        directory = Path(directory)
        manifest = DirectoryManifest.load(self.manifest_path(directory))
        current_word, saved_word = ("Current", "Saved") if compare_only else ("Old", "Restored")

        for name, record in manifest.items():
            target = self._resolve_entry(directory, name)
            if target is None:
                continue
            path, current = target

            is_directory = name == DIRECTORY_KEY
            wanted = record.resolve(
                self.config.default_uid, self.config.default_gid, self.config.default_mode(is_directory)
            )
            if not is_directory:
                self._file_count += 1

            changed = _changed_attributes(current, wanted)
            if not changed:
                continue
            self._changed_count += 1

            warnings: List[str] = []
            if not (compare_only or dry_run):
                warnings = list(self._set_attributes(path, current, wanted))

            yield (
                f"{path} : {current_word} {current.describe()}, "
                f"{saved_word} {wanted.describe()} ({', '.join(changed)})\n"
            )
            yield from warnings

    def walk(self, mode: WalkMode, dry_run: bool = False) -> Iterator[str]:
        """Process every directory of the tree in pre-order.

        Args:
            mode: SAVE captures manifests, RESTORE applies them and COMPARE reports
                differences without changing anything.
            dry_run: For SAVE and RESTORE, print the same output but write nothing.
                COMPARE never writes.

        Yields:
            The output lines of every directory, in walk order.

        Raises:
            FileNotFoundError: If the root path doesn't exist.
            NotADirectoryError: If the root path isn't a directory.
            StatError, ReadError: If the tree cannot be read.
        """
        mode = WalkMode(mode)
        if not self.root_path.exists():
            raise FileNotFoundError(f"Root path does not exist: {self.root_path}")
        if not self.root_path.is_dir():
            raise NotADirectoryError(f"Root path is not a directory: {self.root_path}")

        self._tree = None
        self._directory_count = 0
        self._file_count = 0
        self._changed_count = 0

        visited: Set[FileIdentifier] = set()
        stack: List[Tuple[Path, Optional[DirectoryNode]]] = [(self.root_path, None)]

        while stack:
            if self.should_stop is not None and self.should_stop():
                return

            directory, parent = stack.pop()

            file_id = FileIdentifier.from_stat(self._stat(directory))
            if file_id in visited:
                continue
            visited.add(file_id)

            node = DirectoryNode(
                directory.name if parent is not None else str(directory), parent=parent, dir_path=str(directory)
            )
            if parent is None:
                self._tree = node

            files_before, changed_before = self._file_count, self._changed_count
            if mode == WalkMode.SAVE:
                yield from self.capture(directory, dry_run=dry_run)
            else:
                yield from self.apply(directory, compare_only=mode == WalkMode.COMPARE, dry_run=dry_run)
            node.file_count = self._file_count - files_before
            node.changed_count = self._changed_count - changed_before
            self._directory_count += 1

            children = [Path(entry.path) for entry in self._list(directory) if self._is_traversable(directory, entry)]
            # Reversed so that popping visits children in name order
            stack.extend((child, node) for child in reversed(children))

    def _stat(self, path: Path, follow_symlinks: bool = True) -> os.stat_result:
        try:
            return os.stat(path, follow_symlinks=follow_symlinks)
        except OSError as e:
            raise StatError(str(path), e.strerror or str(e)) from e

    def _list(self, directory: Path) -> List[os.DirEntry]:  # type: ignore[type-arg]
        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise ReadError(str(directory), e.strerror or str(e)) from e

    def _relative(self, directory: Path, name: str) -> str:
        """Path of a directory entry relative to the root, using forward slashes."""
        try:
            relative_dir = directory.relative_to(self.root_path).as_posix()
        except ValueError:
            relative_dir = "."
        return name if relative_dir == "." else f"{relative_dir}/{name}"

    def _excluded(self, directory: Path, name: str, is_dir: bool = False) -> bool:
        if not is_dir and self.config.is_reserved_file(name):
            return True
        relative_path = self._relative(directory, name)
        return self.exclusion_rules.exclude(relative_path + "/" if is_dir else relative_path)

    def _is_regular_file(self, entry: os.DirEntry) -> bool:  # type: ignore[type-arg]
        try:
            return entry.is_file(follow_symlinks=False)
        except OSError as e:
            raise StatError(entry.path, e.strerror or str(e)) from e

    def _is_traversable(self, directory: Path, entry: os.DirEntry) -> bool:  # type: ignore[type-arg]
        try:
            is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
        except OSError as e:
            raise StatError(entry.path, e.strerror or str(e)) from e
        return is_dir and not self._excluded(directory, entry.name, is_dir=True)

    def _resolve_entry(self, directory: Path, name: str) -> Optional[Tuple[Path, PermissionRecord]]:
        """Locate a manifest entry on disk and read its current metadata.

        Returns None for entries that must be skipped: names that are not plain file
        names, ignored names, and files that are missing or have become symlinks.
        """
        if name == DIRECTORY_KEY:
            return directory, PermissionRecord.from_stat(self._stat(directory))

        if not name or name == ".." or "/" in name or (os.altsep and os.altsep in name):
            return None
        if self._excluded(directory, name):
            return None

        path = directory / name
        try:
            st = os.stat(path, follow_symlinks=False)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StatError(str(path), e.strerror or str(e)) from e
        if stat.S_ISLNK(st.st_mode):
            return None
        return path, PermissionRecord.from_stat(st)

    def _set_attributes(self, path: Path, current: PermissionRecord, wanted: PermissionRecord) -> Iterator[str]:
        """Apply each differing attribute on its own, yielding warnings for refused ones."""
        operations: List[Tuple[str, Callable[[], None]]] = []
        if current.uid != wanted.uid:
            operations.append(("owner", lambda: os.chown(path, wanted.uid, -1)))  # type: ignore[arg-type]
        if current.gid != wanted.gid:
            operations.append(("group", lambda: os.chown(path, -1, wanted.gid)))  # type: ignore[arg-type]

        # chown() clears setuid/setgid, so they must be set again afterwards
        restore_bits = bool(operations) and bool((wanted.mode or 0) & _PRIVILEGE_BITS)
        if current.mode != wanted.mode or restore_bits:
            operations.append(("mode", lambda: os.chmod(path, wanted.mode)))  # type: ignore[arg-type]

        for label, operation in operations:
            try:
                operation()
            except PermissionError as e:
                if self.permission_action == PermissionAction.RAISE:
                    raise PermissionError(f"Cannot change {label} of {path}: {e.strerror or e}") from e
                if self.permission_action == PermissionAction.WARN:
                    yield f"Warning: {path}: cannot change {label}: {e.strerror or e}\n"


def _changed_attributes(current: PermissionRecord, wanted: PermissionRecord) -> List[str]:
    """Names of the attributes that differ between two resolved records."""
    changed = []
    if current.uid != wanted.uid:
        changed.append("owner")
    if current.gid != wanted.gid:
        changed.append("group")
    if current.mode != wanted.mode:
        changed.append("mode")
    return changed
