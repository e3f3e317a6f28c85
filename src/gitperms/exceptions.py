class FatalIOError(Exception):
    """
    Exception raised when a filesystem operation fails in a way that aborts the whole run.

    There is no partial-tree recovery: once a directory cannot be listed or an entry that
    should exist cannot be stat'ed, the walk stops and the error propagates to the caller.
    Concrete failures are reported through the StatError and ReadError subclasses.

    Attributes:
        path (str): Path of the file or directory the operation failed on.
        reason (str): Description of the underlying failure.

    Example:
        >>> error = FatalIOError("/srv/data", "No such file or directory")
        >>> str(error)
        'I/O failure on /srv/data: No such file or directory'
    """

    prefix = "I/O failure on"

    def __init__(self, path: str, reason: str = "") -> None:
        """
        Initialize the exception with the failing path and reason.

        Args:
            path (str): Path of the file or directory the operation failed on.
            reason (str, optional): Description of the underlying failure. Defaults to "".
        """
        self.path = str(path)
        self.reason = reason
        message = f"{self.prefix} {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StatError(FatalIOError):
    """
    Exception raised when a file or directory that should exist cannot be stat'ed.

    Example:
        >>> error = StatError("/srv/data/a.txt", "Permission denied")
        >>> str(error)
        'Could not stat /srv/data/a.txt: Permission denied'
        >>> isinstance(error, FatalIOError)
        True
    """

    prefix = "Could not stat"


class ReadError(FatalIOError):
    """
    Exception raised when a directory cannot be opened for listing.

    Example:
        >>> error = ReadError("/srv/data")
        >>> str(error)
        'Could not open directory /srv/data'
    """

    prefix = "Could not open directory"


class LoadError(FatalIOError):
    """
    Exception raised when an existing manifest file cannot be read.

    Example:
        >>> str(LoadError("/srv/data/.gitperms", "Permission denied"))
        'Could not read /srv/data/.gitperms: Permission denied'
    """

    prefix = "Could not read"


class WriteError(FatalIOError):
    """
    Exception raised when a manifest file cannot be written.

    A refused write is an I/O failure of the save itself, not a refused chown or
    chmod, so it aborts the run like any other FatalIOError.

    Example:
        >>> error = WriteError("/srv/data/.gitperms", "Permission denied")
        >>> str(error)
        'Could not write /srv/data/.gitperms: Permission denied'
        >>> isinstance(error, PermissionError)
        False
    """

    prefix = "Could not write"


class ManifestFormatError(Exception):
    """
    Exception raised when a manifest file cannot be interpreted.

    This covers invalid JSON, a top level that is not an object, records that are not
    objects, and uid, gid or mode values of the wrong type or outside their valid range.

    Attributes:
        path (str): Path to the offending manifest file.
        reason (str): What was wrong with it.

    Example:
        >>> error = ManifestFormatError("/srv/data/.gitperms", "invalid mode '9z9'")
        >>> str(error)
        "Invalid manifest /srv/data/.gitperms: invalid mode '9z9'"
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Invalid manifest {self.path}: {reason}")


class UsageError(Exception):
    """
    Exception raised for a malformed command-line invocation.

    Raised by argument validation after argparse has accepted the arguments. The CLI
    reports it together with the usage text and performs no traversal.

    Example:
        >>> error = UsageError("--manifest-name must be a plain file name")
        >>> str(error)
        '--manifest-name must be a plain file name'
    """

    pass
