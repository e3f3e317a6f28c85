"""Command-line interface for gitperms.

This module provides the command-line entry point. It parses arguments, builds the
walk configuration, streams the walker's output to stdout and maps failures and
signals to exit codes.

Signal Handling Notes:
    - SIGINT: The walk finishes the directory it is working on and stops. Metadata
      already restored stays restored; there is no rollback.
    - SIGPIPE: Output stops quietly when the reading end of a pipe is closed.

Exit Codes:
    0: Successful completion
    1: Usage error, unreadable tree, invalid manifest or other runtime error
    126: Permission denied while restoring (with -P fail, the default)
    130: Interrupted by SIGINT (Ctrl+C)
    141: Broken pipe (SIGPIPE)

Example:
    # Save, then restore after a checkout
    $ gitperms save /srv/www
    $ gitperms restore /srv/www

    # Preview a restore
    $ gitperms restore --dry-run /srv/www
"""

import sys
from collections.abc import Mapping
from datetime import datetime

from gitperms.cli.argparser import USAGE_EXIT_CODE, create_parser, resolve_directory, validate_args
from gitperms.cli.safe_writer import SafeWriter
from gitperms.cli.signal_handler import setup_signal_handling, signal_handler
from gitperms.config import PermsConfig
from gitperms.exceptions import UsageError
from gitperms.exclusion_rules.git_rules import GitIgnoreExclusionRules
from gitperms.permission_tree.permission_action import PermissionAction
from gitperms.permission_tree.permission_walker import PermissionWalker

TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def format_counts(counts: Mapping[str, int]) -> str:
    """Format the counts into a human-readable string.

    Args:
        counts: Mapping containing the directories, files and changed counts.

    Returns:
        A formatted string showing all counts with appropriate labels.
    """
    return "\n".join(
        [
            f"Directories: {counts['directories']}",
            f"Files: {counts['files']}",
            f"Changed: {counts['changed']}",
        ]
    )


def format_summary(walker: PermissionWalker) -> str:
    """Format the counts of a finished walk and the directories that had changes.

    Example:
        >>> print(format_summary(walker))  # doctest: +SKIP
        Directories: 2
        Files: 3
        Changed: 1
        Changed directories:
          /srv/www: 1
    """
    counts = {
        "directories": walker.directory_count,
        "files": walker.file_count,
        "changed": walker.changed_count,
    }
    lines = [format_counts(counts)]
    changed = walker.changed_directories()
    if changed:
        lines.append("Changed directories:")
        lines.extend(f"  {node.dir_path}: {node.changed_count}" for node in changed)
    return "\n".join(lines)


def status_line(event: str, mode: str, dry_run: bool) -> str:
    """Build the timestamped line printed when a run starts or completes.

    Example:
        >>> status_line("Started", "save", True)  # doctest: +SKIP
        '19/10/2026 14:03:12 Started save (DRY RUN)\\n'
    """
    dry_run_str = " (DRY RUN)" if dry_run else ""
    return f"{datetime.now().strftime(TIMESTAMP_FORMAT)} {event} {mode}{dry_run_str}\n"


def main() -> None:
    """Main entry point for the gitperms command-line interface.

    Exit codes:
        0: Successful completion
        1: Usage error or runtime error during execution
        126: Permission denied
        130: Interrupted by SIGINT (Ctrl+C)
        141: Broken pipe (SIGPIPE)
    """
    setup_signal_handling()

    try:
        # Collects -i/-e patterns in command-line order during parsing
        user_rules = GitIgnoreExclusionRules()

        parser = create_parser(user_rules)
        args = parser.parse_args()

        try:
            validate_args(args)
        except UsageError as e:
            parser.print_usage(sys.stderr)
            print(f"Error: {str(e)}", file=sys.stderr)
            sys.exit(USAGE_EXIT_CODE)

        config = PermsConfig(manifest_name=args.manifest_name)
        exclusion_rules = config.build_exclusion_rules()
        exclusion_rules.extend(user_rules)

        perm_action = {
            "ignore": PermissionAction.IGNORE,
            "warn": PermissionAction.WARN,
            "fail": PermissionAction.RAISE,
        }[args.permission_action]

        walker = PermissionWalker(
            resolve_directory(args.directory),
            config=config,
            exclusion_rules=exclusion_rules,
            permission_action=perm_action,
            follow_symlinks=args.follow_symlinks,
            should_stop=signal_handler.interrupted,
        )

        try:
            with SafeWriter(sys.stdout.fileno()) as safe_writer:
                try:
                    safe_writer.write(status_line("Started", args.mode, args.dry_run))
                    for line in walker.walk(args.mode, dry_run=args.dry_run):
                        safe_writer.write(line)

                    if not signal_handler.interrupted():
                        safe_writer.write(status_line("Completed", args.mode, args.dry_run))

                    if args.summary:
                        summary = format_summary(walker)
                        if args.summary == "stdout":
                            safe_writer.write("\n" + summary + "\n")
                        else:
                            print(summary, file=sys.stderr)

                except BrokenPipeError:
                    pass

        except PermissionError as e:
            print(f"Error: {str(e)}", file=sys.stderr)
            sys.exit(126)

    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)

    # Handle exit codes based on received signals
    if signal_handler.sigpipe_received.is_set():
        sys.exit(141)
    elif signal_handler.sigint_received.is_set():
        sys.exit(130)


if __name__ == "__main__":
    main()
