"""Implementation of ignore rules using .gitignore pattern syntax."""

from os import PathLike
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern  # type: ignore

from gitperms.types import PathType

from .base_rules import BaseExclusionRules


class GitIgnoreExclusionRules(BaseExclusionRules):
    """Ignore rules using .gitignore pattern syntax.

    Uses the pathspec library to match paths against patterns the same way Git does:
    globs, directory-only patterns ending in ``/``, negations starting with ``!``,
    ``**`` matching and ``#`` comments are all supported. A pattern without a slash
    matches at any depth, so the default ``.gitperms`` rule skips every manifest in the
    tree and ``.git/`` skips every Git metadata directory.

    Rules are evaluated in the order they were added, with later rules overriding
    earlier ones (particularly for negation patterns).

    Attributes:
        spec (PathSpec): Compiled pattern matcher from the pathspec library.

    Example:
        >>> rules = GitIgnoreExclusionRules.from_names(dirs=[".git"], files=[".gitperms"])
        >>> rules.exclude(".git/")
        True
        >>> rules.exclude("vendor/.git/")
        True
        >>> rules.exclude("docs/.gitperms")
        True
        >>> rules.exclude("docs/index.md")
        False
    """

    def __init__(self, rules_files: Optional[Union[PathType, Sequence[PathType]]] = None):
        """Initialize GitIgnoreExclusionRules with patterns from specified files.

        Args:
            rules_files: Path(s) to the file(s) containing .gitignore patterns.

        Raises:
            FileNotFoundError: If any rules file does not exist.
        """
        self.spec = PathSpec.from_lines(GitWildMatchPattern, [])

        if rules_files is not None:
            self.load_rules(rules_files)

    @classmethod
    def from_names(cls, dirs: Iterable[str] = (), files: Iterable[str] = ()) -> "GitIgnoreExclusionRules":
        """Build rules that ignore the given directory and file names at any depth.

        Names are matched literally: glob characters in them are escaped.

        Args:
            dirs: Directory names that are never traversed.
            files: File names that are never captured or restored.

        Returns:
            A new rules object holding one pattern per name.

        Example:
            >>> rules = GitIgnoreExclusionRules.from_names(dirs=["build[1]"])
            >>> rules.exclude("build[1]/")
            True
            >>> rules.exclude("build1/")
            False
        """
        rules = cls()
        for name in dirs:
            rules.add_rule(f"{_escape(name)}/")
        for name in files:
            rules.add_rule(_escape(name))
        return rules

    def exclude(self, path: str) -> bool:
        """Check if a path should be excluded based on the loaded patterns.

        Args:
            path: Path relative to the walk root. Directories end with "/".

        Returns:
            bool: True if the path matches a non-negated pattern that isn't overridden
                by a later negation, False otherwise.

        Example:
            >>> rules = GitIgnoreExclusionRules()
            >>> rules.add_rule("*.tmp")
            >>> rules.add_rule("!keep.tmp")
            >>> rules.exclude("scratch.tmp")
            True
            >>> rules.exclude("keep.tmp")
            False
        """
        return self.spec.match_file(path)

    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """Load and combine .gitignore patterns from one or more files.

        Patterns are appended after those already loaded, in file order.

        Args:
            rules_files: Path(s) to file(s) containing .gitignore patterns.

        Raises:
            FileNotFoundError: If any rules file does not exist.
        """
        if isinstance(rules_files, (str, PathLike)):
            rules_files = [rules_files]

        for rules_file in rules_files:
            path = Path(rules_file)
            if not path.exists():
                raise FileNotFoundError(f"Rules file not found: {path}")

            with open(path, "r", encoding="utf-8") as f:
                gitignore_content = f.read().splitlines()

            new_patterns = PathSpec.from_lines(GitWildMatchPattern, gitignore_content).patterns

            # Ensure patterns is a list that supports extend
            if not hasattr(self.spec.patterns, "extend"):
                self.spec.patterns = list(self.spec.patterns)

            self.spec.patterns.extend(new_patterns)

    def add_rule(self, rule: str) -> None:
        """Add a single .gitignore pattern directly.

        Args:
            rule: A single .gitignore pattern, e.g. "*.tmp", "cache/" or "!keep.tmp".

        Example:
            >>> rules = GitIgnoreExclusionRules()
            >>> rules.add_rule("node_modules/")
            >>> rules.exclude("web/node_modules/")
            True
        """
        new_pattern = GitWildMatchPattern(rule)

        # Ensure patterns is a list that supports append
        if not hasattr(self.spec.patterns, "append"):
            self.spec.patterns = list(self.spec.patterns)

        self.spec.patterns.append(new_pattern)

    def extend(self, other: "GitIgnoreExclusionRules") -> None:
        """Append all patterns of another rules object after this object's patterns.

        Example:
            >>> rules = GitIgnoreExclusionRules.from_names(dirs=[".git"])
            >>> extra = GitIgnoreExclusionRules()
            >>> extra.add_rule("!.git/")
            >>> rules.extend(extra)
            >>> rules.exclude(".git/")
            False
        """
        if not hasattr(self.spec.patterns, "extend"):
            self.spec.patterns = list(self.spec.patterns)

        self.spec.patterns.extend(other.spec.patterns)


def _escape(name: str) -> str:
    """Escape gitignore metacharacters so that a name matches only itself."""
    escaped = "".join(f"\\{c}" if c in "\\*?[" else c for c in name)
    if escaped.startswith(("!", "#")):
        escaped = "\\" + escaped
    return escaped
