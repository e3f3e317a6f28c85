"""Permission action enum for handling permission errors while applying a manifest."""

from enum import Enum


class PermissionAction(str, Enum):
    """Action to take when chown or chmod is refused while restoring metadata.

    Values:
        RAISE: Propagate the PermissionError and abort the run (default behavior)
        WARN: Report the failure in the output and continue with the next attribute
        IGNORE: Continue silently, leaving the attribute unchanged
    """

    RAISE = "raise"
    WARN = "warn"
    IGNORE = "ignore"
