"""Signal handling utilities for gitperms CLI.

A restore that is interrupted halfway leaves the metadata it already applied in
place. To keep that damage to whole directories, SIGINT does not abort the process
immediately: it is recorded, and the walk stops before starting the next directory.
SIGPIPE is recorded the same way so that output to a closed pipe ends quietly.
"""

import atexit
import os
import signal
import sys
from threading import Event
from types import FrameType
from typing import Optional


class SignalHandler:
    """Turns SIGINT and SIGPIPE into flags polled between directories.

    Each handler fires once: after recording its signal it reinstalls the handler
    that was active before, so a second Ctrl+C interrupts the current directory too.

    Attributes:
        sigpipe_received: Set once the reader of stdout has gone away.
        sigint_received: Set once the user asked the walk to stop.
        original_sigpipe_handler: SIGPIPE handler to fall back to.
        original_sigint_handler: SIGINT handler to fall back to.
    """

    def __init__(self) -> None:
        self.sigpipe_received = Event()
        self.sigint_received = Event()
        self.original_sigpipe_handler = signal.getsignal(signal.SIGPIPE)
        self.original_sigint_handler = signal.getsignal(signal.SIGINT)

    def handle_sigpipe(self, signum: int, frame: Optional[FrameType]) -> None:
        self.sigpipe_received.set()
        signal.signal(signal.SIGPIPE, self.original_sigpipe_handler)

    def handle_sigint(self, signum: int, frame: Optional[FrameType]) -> None:
        self.sigint_received.set()
        signal.signal(signal.SIGINT, self.original_sigint_handler)

    def interrupted(self) -> bool:
        """Whether the walk should stop before the next directory.

        Passed to PermissionWalker as its should_stop callback.
        """
        return self.sigint_received.is_set() or self.sigpipe_received.is_set()


# Shared by main() and SafeWriter
signal_handler = SignalHandler()


def setup_signal_handling() -> None:
    """Route SIGPIPE and SIGINT to the shared handler for the rest of the run."""
    signal.signal(signal.SIGPIPE, signal_handler.handle_sigpipe)
    signal.signal(signal.SIGINT, signal_handler.handle_sigint)


def cleanup() -> None:
    """Point stdout at the null device after an interrupted run.

    Runs at interpreter exit, so flushing a stdout whose reader is gone cannot
    print a second error on top of the exit status.
    """
    if signal_handler.interrupted():
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())


atexit.register(cleanup)
