"""Unit tests for the signal handler module in gitperms CLI."""

import os
import signal
from unittest.mock import MagicMock, patch

import pytest

from gitperms.cli.signal_handler import SignalHandler, cleanup, setup_signal_handling, signal_handler


@pytest.fixture
def mock_signal():
    """Patch signal.signal so no real handlers are installed."""
    with patch("signal.signal", autospec=True) as mock:
        yield mock


@pytest.fixture
def mock_os():
    """Create a mock for os module functions used in signal handling."""
    with patch("gitperms.cli.signal_handler.os", autospec=True) as mock:
        mock.open.return_value = 123
        mock.dup2 = MagicMock()
        mock.devnull = "/dev/null"
        mock.O_WRONLY = os.O_WRONLY
        yield mock


@pytest.fixture
def reset_singleton():
    """Clear the singleton's events after a test that sets them."""
    yield
    signal_handler.sigpipe_received.clear()
    signal_handler.sigint_received.clear()


def test_signal_handler_initialization():
    with patch("signal.getsignal") as mock_getsignal:
        mock_getsignal.side_effect = [signal.SIG_DFL, signal.default_int_handler]

        handler = SignalHandler()

        mock_getsignal.assert_any_call(signal.SIGPIPE)
        mock_getsignal.assert_any_call(signal.SIGINT)
        assert handler.original_sigpipe_handler is signal.SIG_DFL
        assert handler.original_sigint_handler is signal.default_int_handler
        assert not handler.interrupted()


def test_handle_sigint_records_and_restores(mock_signal):
    handler = SignalHandler()

    handler.handle_sigint(signal.SIGINT, None)

    assert handler.sigint_received.is_set()
    assert handler.interrupted()
    mock_signal.assert_called_once_with(signal.SIGINT, handler.original_sigint_handler)


def test_handle_sigpipe_records_and_restores(mock_signal):
    handler = SignalHandler()

    handler.handle_sigpipe(signal.SIGPIPE, None)

    assert handler.sigpipe_received.is_set()
    assert handler.interrupted()
    mock_signal.assert_called_once_with(signal.SIGPIPE, handler.original_sigpipe_handler)


def test_setup_signal_handling(mock_signal):
    setup_signal_handling()

    mock_signal.assert_any_call(signal.SIGPIPE, signal_handler.handle_sigpipe)
    mock_signal.assert_any_call(signal.SIGINT, signal_handler.handle_sigint)


def test_cleanup_without_signals(mock_os):
    cleanup()
    mock_os.dup2.assert_not_called()


def test_cleanup_after_sigint(mock_os, reset_singleton):
    signal_handler.sigint_received.set()

    with patch("sys.stdout") as mock_stdout:
        mock_stdout.fileno.return_value = 1
        cleanup()

    mock_os.open.assert_called_once_with("/dev/null", os.O_WRONLY)
    mock_os.dup2.assert_called_once_with(123, 1)
