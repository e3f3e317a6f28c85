from abc import ABC, abstractmethod


class BaseExclusionRules(ABC):
    """
    Abstract base class defining what the walker asks of ignore rules.

    The walker consults an exclusion rules object twice: before descending into a
    subdirectory, and before capturing or applying a manifest entry. Paths are always
    given relative to the walk root with forward slashes, and directory paths carry a
    trailing slash so that directory-only patterns (``.git/``) can tell them apart.

    Rules can only add exclusions. The manifest, its temporary files and the
    configured ignore names are skipped by the walker before any rule is consulted.

    Example:
        >>> from gitperms.exclusion_rules.git_rules import GitIgnoreExclusionRules
        >>> rules = GitIgnoreExclusionRules()
        >>> rules.add_rule('.git/')
        >>> rules.exclude('.git/')
        True
        >>> rules.exclude('src/')
        False
    """

    @abstractmethod
    def exclude(self, path: str) -> bool:
        """
        Determine if a given path should be excluded based on the loaded rules.

        Args:
            path (str): Path relative to the walk root. Directories end with "/".

        Returns:
            bool: True if the path should be skipped, False if it should be processed.
        """
        pass
