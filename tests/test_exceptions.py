"""Tests for custom exceptions."""

from gitperms.exceptions import (
    FatalIOError,
    LoadError,
    ManifestFormatError,
    ReadError,
    StatError,
    UsageError,
    WriteError,
)


class TestFatalIOErrors:
    """Test the errors that abort a walk."""

    def test_stat_error(self):
        error = StatError("/srv/a.txt", "Permission denied")
        assert error.path == "/srv/a.txt"
        assert error.reason == "Permission denied"
        assert str(error) == "Could not stat /srv/a.txt: Permission denied"
        assert isinstance(error, FatalIOError)

    def test_read_error_without_reason(self):
        error = ReadError("/srv")
        assert str(error) == "Could not open directory /srv"
        assert isinstance(error, FatalIOError)

    def test_manifest_io_errors(self):
        assert str(LoadError("/srv/.gitperms", "Is a directory")) == "Could not read /srv/.gitperms: Is a directory"
        error = WriteError("/srv/.gitperms", "Read-only file system")
        assert str(error) == "Could not write /srv/.gitperms: Read-only file system"
        assert isinstance(error, FatalIOError)
        assert not isinstance(error, OSError)

    def test_path_like_is_converted(self, tmp_path):
        error = StatError(tmp_path)
        assert error.path == str(tmp_path)


class TestOtherErrors:
    def test_manifest_format_error(self):
        error = ManifestFormatError("/srv/.gitperms", "top level must be a JSON object")
        assert error.path == "/srv/.gitperms"
        assert str(error) == "Invalid manifest /srv/.gitperms: top level must be a JSON object"
        assert not isinstance(error, FatalIOError)

    def test_usage_error(self):
        error = UsageError("bad invocation")
        assert str(error) == "bad invocation"
