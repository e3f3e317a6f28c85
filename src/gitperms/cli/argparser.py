"""Command-line argument parsing for gitperms.

This module defines the command-line interface for gitperms,
handling argument parsing and validation.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Any, List, NoReturn, Optional, Sequence, Tuple, Type, Union

from gitperms import __version__
from gitperms.config import DEFAULT_MANIFEST_NAME
from gitperms.exceptions import UsageError
from gitperms.exclusion_rules.git_rules import GitIgnoreExclusionRules
from gitperms.types import WalkMode

# Exit status for malformed invocations
USAGE_EXIT_CODE = 1

HELP_FLAGS = ("-h", "--help")


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser with the tool's command-line conventions.

    Usage errors exit with status 1 instead of 2, and -h/--help anywhere before a
    "--" prints the help and exits 0 before any other argument is checked.
    """

    def parse_known_args(  # type: ignore[override]
        self, args: Optional[Sequence[str]] = None, namespace: Optional[argparse.Namespace] = None
    ) -> Tuple[argparse.Namespace, List[str]]:
        argv = list(sys.argv[1:] if args is None else args)
        options = argv[: argv.index("--")] if "--" in argv else argv
        if any(arg in HELP_FLAGS for arg in options):
            self.print_help()
            self.exit(0)
        return super().parse_known_args(argv, namespace)

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(USAGE_EXIT_CODE, f"{self.prog}: error: {message}\n")


def create_exclusion_action(exclusion_rules: GitIgnoreExclusionRules) -> Type[argparse.Action]:
    """Create a custom action class for handling ignore patterns.

    This factory function creates an action class that updates the provided
    exclusion rules object as arguments are processed, preserving the order in
    which -i and -e options appear on the command line.

    Args:
        exclusion_rules: The exclusion rules object to update during parsing.

    Returns:
        A custom action class for use with argparse.
    """

    class ExclusionRulesAction(argparse.Action):
        """Action to update exclusion rules as arguments are processed."""

        def __init__(self, option_strings: List[str], dest: str, **kwargs: Any) -> None:
            super().__init__(option_strings, dest, **kwargs)

        def __call__(
            self,
            parser: argparse.ArgumentParser,
            namespace: argparse.Namespace,
            values: Union[str, Sequence[Any], None],
            option_string: Optional[str] = None,
        ) -> None:
            if values is None:
                return

            if option_string in ("-e", "--exclude"):
                if isinstance(values, (str, os.PathLike)):
                    exclusion_rules.load_rules(values)
                else:
                    exclusion_rules.load_rules(Path(str(values)))
            else:  # -i/--ignore
                exclusion_rules.add_rule(str(values))

            recorded = getattr(namespace, self.dest, None) or []
            setattr(namespace, self.dest, recorded + [values])

    return ExclusionRulesAction


def create_parser(exclusion_rules: GitIgnoreExclusionRules) -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser.

    Args:
        exclusion_rules: The exclusion rules object that -i and -e populate.

    Returns:
        An ArgumentParser instance configured with gitperms's options.
    """
    description = """
    gitperms: save and restore file ownership and permissions for a directory tree.

    Version control and many archive formats drop Unix ownership and most permission
    bits. gitperms records the owner, group and mode of every directory and regular
    file into one small JSON manifest per directory (.gitperms by default), so they can
    be committed along with the files and restored after a checkout.

    Modes:
      save      Save the permissions
      restore   Restore the permissions
      compare   Compare the current permissions with what was last saved
    """

    epilog = """
    Examples:
      # Save permissions for the current directory tree
      gitperms save

      # Show what a restore would change without changing anything
      gitperms restore --dry-run /srv/www

      # List differences between the tree and its manifests
      gitperms compare /srv/www

      # Skip build output and use a different manifest name
      gitperms save -i "build/" -m .perms /srv/www

      # Keep going when chown is not permitted, reporting each failure
      gitperms restore -P warn /srv/www
    """

    parser = UsageArgumentParser(
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"gitperms {__version__}", help="Show the version and exit"
    )

    ExclusionAction = create_exclusion_action(exclusion_rules)

    parser.add_argument(
        "mode",
        choices=[mode.value for mode in WalkMode],
        help="Operation to perform on every directory.",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        type=Path,
        help="The root directory to start from. Defaults to the current working directory.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Don't actually save or restore the permissions; print what would be done.",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        type=str,
        metavar="PATTERN",
        action=ExclusionAction,
        help=(
            "Gitignore-style pattern for directories or files to skip, in addition to .git/ and the "
            "manifest itself. Can be specified multiple times."
        ),
    )
    parser.add_argument(
        "-e",
        "--exclude",
        type=Path,
        metavar="FILE",
        action=ExclusionAction,
        help="File of gitignore-style patterns to skip (can be specified multiple times).",
    )
    parser.add_argument(
        "-m",
        "--manifest-name",
        metavar="NAME",
        default=DEFAULT_MANIFEST_NAME,
        help=f"File name of the per-directory manifest (default: {DEFAULT_MANIFEST_NAME}).",
    )
    parser.add_argument(
        "-L",
        "--follow-symlinks",
        action="store_true",
        help="Descend into symbolic links to directories. By default they are skipped.",
    )
    parser.add_argument(
        "-P",
        "--permission-action",
        choices=["ignore", "warn", "fail"],
        default="fail",
        help="How to handle chown/chmod permission errors during restore (default: fail).",
    )
    parser.add_argument(
        "-s",
        "--summary",
        metavar="DEST",
        choices=["stderr", "stdout"],
        help="Print a summary report. Valid destinations: stderr, stdout",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments.

    Performs additional validation beyond what argparse can handle.

    Args:
        args: Parsed command-line arguments.

    Raises:
        UsageError: If any arguments fail validation.
    """
    name = args.manifest_name
    if not name or name in (".", "..") or os.sep in name or (os.altsep and os.altsep in name):
        raise UsageError(f"--manifest-name must be a plain file name, got {name!r}")


def resolve_directory(directory: Optional[Path]) -> Path:
    """Choose the root directory of the walk.

    A directory argument that does not exist or is not a directory is ignored and
    the current working directory is used instead, with a warning on stderr.

    Args:
        directory: The positional directory argument, if given.

    Returns:
        The directory to start from.
    """
    if directory is None:
        return Path.cwd()
    if directory.is_dir():
        return directory
    print(f"Warning: {directory} is not a directory; using {Path.cwd()}", file=sys.stderr)
    return Path.cwd()
