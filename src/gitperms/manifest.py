"""Per-directory permission manifests.

A manifest is a small JSON object stored inside each directory of the tree. It maps
the key ``"."`` (the directory itself) and the name of every regular file directly
inside the directory to the owner, group and permission bits recorded for it::

    {".": {"gid": 0, "mode": "755", "uid": 0}, "run.sh": {"gid": 0, "mode": "750", "uid": 0}}

Modes are stored as octal digit strings without zero padding, matching the format
written by earlier versions of the tool. Any field may be absent; the missing
values are filled from configured defaults when the manifest is applied.
"""

import json
import os
import re
import stat
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from gitperms.exceptions import LoadError, ManifestFormatError, WriteError
from gitperms.types import PathType

# Key under which a manifest records the directory that contains it
DIRECTORY_KEY = "."

MODE_MASK = 0o7777

# Permission bits of a newly created manifest
MANIFEST_FILE_MODE = 0o644

# Temporary files are named "<manifest>.<random>.tmp" while a manifest is written
TEMP_SUFFIX = ".tmp"
TEMP_NAME_PATTERN = r"\.[a-z0-9_]{8}" + re.escape(TEMP_SUFFIX)


def parse_mode(value: Any) -> int:
    """Parse a stored permission mode.

    Strings are read as base 8. Integers are read by their decimal digits, so a
    hand-written ``644`` means ``0o644`` rather than decimal 644.

    Args:
        value: The "mode" value from a manifest record.

    Returns:
        The mode as an integer in the range 0 to 0o7777.

    Raises:
        ValueError: If the value is not valid octal or exceeds 12 bits.

    Example:
        >>> oct(parse_mode("644"))
        '0o644'
        >>> oct(parse_mode(4755))
        '0o4755'
        >>> parse_mode("8")
        Traceback (most recent call last):
        ...
        ValueError: invalid mode '8'
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(f"invalid mode {value!r}")
    try:
        mode = int(str(value).strip(), 8)
    except ValueError:
        raise ValueError(f"invalid mode {value!r}") from None
    if not 0 <= mode <= MODE_MASK:
        raise ValueError(f"invalid mode {value!r}")
    return mode


def format_mode(mode: int) -> str:
    """Render permission bits the way they are stored on disk.

    Example:
        >>> format_mode(0o100644)
        '644'
        >>> format_mode(0o1777)
        '1777'
    """
    return format(mode & MODE_MASK, "o")


@dataclass(frozen=True)
class PermissionRecord:
    """Ownership and permission bits recorded for one filesystem entry.

    Every field is optional so that partially written manifests can be represented;
    use resolve() to fill the gaps before comparing against the filesystem.

    Attributes:
        uid: Numeric owner id.
        gid: Numeric group id.
        mode: Permission bits (setuid/setgid/sticky and rwx for user, group, other).
    """

    uid: Optional[int] = None
    gid: Optional[int] = None
    mode: Optional[int] = None

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "PermissionRecord":
        return cls(uid=st.st_uid, gid=st.st_gid, mode=stat.S_IMODE(st.st_mode))

    def resolve(self, uid: int, gid: int, mode: int) -> "PermissionRecord":
        """Return a copy with every missing field replaced by the given default.

        Example:
            >>> PermissionRecord(uid=1000).resolve(0, 0, 0o644)
            PermissionRecord(uid=1000, gid=0, mode=420)
        """
        return PermissionRecord(
            uid=uid if self.uid is None else self.uid,
            gid=gid if self.gid is None else self.gid,
            mode=mode if self.mode is None else self.mode,
        )

    def describe(self) -> str:
        """Format the record as ``uid:gid mode`` for console output.

        Example:
            >>> PermissionRecord(1000, 100, 0o640).describe()
            '1000:100 640'
        """
        mode = "?" if self.mode is None else format_mode(self.mode)
        return f"{self.uid}:{self.gid} {mode}"

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.uid is not None:
            data["uid"] = self.uid
        if self.gid is not None:
            data["gid"] = self.gid
        if self.mode is not None:
            data["mode"] = format_mode(self.mode)
        return data

    @classmethod
    def from_json(cls, data: Any) -> "PermissionRecord":
        """Build a record from its JSON object, leaving absent or null fields unset.

        Raises:
            ValueError: If the object or any of its fields is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")

        ids = {}
        for field in ("uid", "gid"):
            value = data.get(field)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
                raise ValueError(f"invalid {field} {value!r}")
            ids[field] = value

        mode = data.get("mode")
        return cls(uid=ids["uid"], gid=ids["gid"], mode=None if mode is None else parse_mode(mode))


class DirectoryManifest(Mapping):  # type: ignore[type-arg]
    """Mapping from entry name to PermissionRecord for a single directory.

    The key "." stands for the directory itself; every other key is the plain name
    of a regular file directly inside it. Subdirectories are never listed here, they
    carry their own manifest.

    Example:
        >>> manifest = DirectoryManifest()
        >>> manifest.add(".", PermissionRecord(0, 0, 0o755))
        >>> manifest.add("a.txt", PermissionRecord(1000, 1000, 0o644))
        >>> print(manifest.dumps(), end="")
        {
          ".": {
            "gid": 0,
            "mode": "755",
            "uid": 0
          },
          "a.txt": {
            "gid": 1000,
            "mode": "644",
            "uid": 1000
          }
        }
        >>> sorted(DirectoryManifest.loads(manifest.dumps()))
        ['.', 'a.txt']
    """

    def __init__(self, records: Optional[Dict[str, PermissionRecord]] = None) -> None:
        self._records: Dict[str, PermissionRecord] = dict(records or {})

    def __getitem__(self, name: str) -> PermissionRecord:
        return self._records[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"DirectoryManifest({self._records!r})"

    def add(self, name: str, record: PermissionRecord) -> None:
        self._records[name] = record

    def dumps(self) -> str:
        """Serialize to stable JSON: keys sorted, two-space indent, trailing newline."""
        data = {name: record.to_json() for name, record in self._records.items()}
        return json.dumps(data, indent=2, sort_keys=True) + "\n"

    @classmethod
    def loads(cls, text: str, source: PathType = "<string>") -> "DirectoryManifest":
        """Parse manifest JSON.

        Args:
            text: The JSON document.
            source: Where the text came from, used in error messages.

        Raises:
            ManifestFormatError: If the document is not a JSON object of records.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestFormatError(str(source), f"not valid JSON ({e})")

        if not isinstance(data, dict):
            raise ManifestFormatError(str(source), "top level must be a JSON object")

        manifest = cls()
        for name, record in data.items():
            try:
                manifest.add(name, PermissionRecord.from_json(record))
            except ValueError as e:
                raise ManifestFormatError(str(source), f"entry {name!r}: {e}")
        return manifest

    @classmethod
    def load(cls, path: PathType) -> "DirectoryManifest":
        """Read a manifest file; a file that does not exist yields an empty manifest.

        Raises:
            ManifestFormatError: If the file content is malformed.
            LoadError: If the file exists but cannot be read.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(str(path), getattr(e, "strerror", None) or str(e)) from e
        return cls.loads(text, source=path)

    def save(self, path: PathType) -> None:
        """Write the manifest, replacing any previous file at the same path.

        The content goes to a uniquely named sibling first and is then renamed into
        place, so a reader never sees a half-written manifest and no other file in
        the directory is touched. An existing manifest keeps its permission bits.

        Raises:
            WriteError: If the file cannot be created, written or renamed.
        """
        path = Path(path)
        try:
            mode = stat.S_IMODE(os.stat(path).st_mode)
        except FileNotFoundError:
            mode = MANIFEST_FILE_MODE
        except OSError as e:
            raise WriteError(str(path), e.strerror or str(e)) from e

        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=TEMP_SUFFIX)
        except OSError as e:
            raise WriteError(str(path), e.strerror or str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                os.fchmod(f.fileno(), mode)
                f.write(self.dumps())
            os.replace(tmp_name, path)
        except OSError as e:
            raise WriteError(str(path), e.strerror or str(e)) from e
        finally:
            if os.path.lexists(tmp_name):
                os.unlink(tmp_name)


def is_temporary_manifest(name: str, manifest_name: str) -> bool:
    """Whether a file name is an in-progress (or abandoned) write of a manifest.

    Example:
        >>> is_temporary_manifest(".gitperms.k3x_9qa2.tmp", ".gitperms")
        True
        >>> is_temporary_manifest(".gitperms.tmp", ".gitperms")
        False
    """
    return re.fullmatch(re.escape(manifest_name) + TEMP_NAME_PATTERN, name) is not None
