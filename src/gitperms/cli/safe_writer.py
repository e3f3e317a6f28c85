"""Safe output writing utilities for gitperms CLI.

Progress lines are written straight to a file descriptor so that a closed pipe or
an interrupt is noticed on the next write instead of at interpreter shutdown.
"""

import errno
import os
import types
from typing import Optional, Type

from gitperms.cli.signal_handler import signal_handler


class SafeWriter:
    """Signal-aware line writer for a file descriptor.

    Attributes:
        fd: The file descriptor being written to. It is not closed by the writer.
        lines_written: Number of write() calls that completed.
    """

    def __init__(self, fd: int):
        if not isinstance(fd, int) or isinstance(fd, bool):
            raise TypeError(f"Expected a file descriptor, got {type(fd).__name__}")
        self.fd = fd
        self.lines_written = 0
        self._closed = False

    def write(self, data: str) -> None:
        """Write data, giving up once SIGPIPE has been received or the pipe is gone.

        Raises:
            BrokenPipeError: If SIGPIPE was received or the reader went away.
            OSError: If another I/O error occurs during writing.
            ValueError: If the writer has been closed.
        """
        if self._closed:
            raise ValueError("Cannot write to closed SafeWriter")

        if signal_handler.sigpipe_received.is_set():
            raise BrokenPipeError()

        payload = data.encode("utf-8")
        try:
            while payload:
                written = os.write(self.fd, payload)
                payload = payload[written:]
        except OSError as e:
            if e.errno == errno.EPIPE:
                raise BrokenPipeError()
            raise
        self.lines_written += 1

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "SafeWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        self.close()
