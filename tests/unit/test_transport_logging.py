"""Unit tests for accept loop logging events."""

import logging
import socket
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from minihttp.bootstrap.config import ServerConfig
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.transport.accept_loop import run_server
from minihttp.transport.pool import PoolClosed


@pytest.fixture(name="mock_args")
def fixture_mock_args():
    """Create mock CLI arguments."""
    return MagicMock(host="localhost", port=8080, directory=Path("."))


@pytest.fixture(name="mock_config")
def fixture_mock_config():
    """Create a small ServerConfig."""
    return ServerConfig(workers=2, socket_timeout=1, shutdown_grace_seconds=1)


@pytest.fixture(name="mock_lifecycle")
def fixture_mock_lifecycle():
    """Create mock ServerLifecycle."""
    lifecycle = MagicMock(spec=ServerLifecycle)
    lifecycle.should_stop.side_effect = [False, True]  # Run once then stop
    return lifecycle


def find_event(caplog, event: str):
    return next(
        (r for r in caplog.records if getattr(r, "event", None) == event), None
    )


def test_accept_loop_logs_server_listening_and_stopped(
    mock_args, mock_config, mock_lifecycle, caplog
):
    """Startup and shutdown are bracketed by INFO events."""
    caplog.set_level(logging.INFO)

    with patch("minihttp.transport.accept_loop.create_server_socket") as mock_create:
        mock_server_sock = MagicMock()
        mock_server_sock.accept.side_effect = OSError("Stop loop")
        mock_create.return_value = mock_server_sock

        run_server(mock_args, mock_config, mock_lifecycle)

    listening_record = find_event(caplog, "server_listening")
    assert listening_record is not None
    assert listening_record.host == "localhost"
    assert listening_record.port == 8080
    assert listening_record.workers == 2
    assert find_event(caplog, "server_stopped") is not None
    mock_server_sock.close.assert_called_once()


def test_accept_loop_submits_client_and_logs_accept(
    mock_args, mock_config, mock_lifecycle, caplog
):
    """Accepted sockets become pool tasks; DEBUG logs client_accepted."""
    caplog.set_level(logging.DEBUG)
    logging.getLogger("minihttp.transport.accept").setLevel(logging.DEBUG)
    mock_lifecycle.should_stop.side_effect = [False, False, True]

    with patch(
        "minihttp.transport.accept_loop.create_server_socket"
    ) as mock_create, patch("minihttp.transport.accept_loop.WorkerPool") as mock_pool_cls:
        mock_server_sock = MagicMock()
        client_sock = MagicMock()
        mock_server_sock.accept.side_effect = [
            (client_sock, ("127.0.0.1", 12345)),
            OSError("Stop loop"),
        ]
        mock_create.return_value = mock_server_sock
        mock_pool = mock_pool_cls.return_value
        mock_pool.pending = 0
        mock_pool.shutdown.return_value = True

        try:
            run_server(mock_args, mock_config, mock_lifecycle)
        finally:
            logging.getLogger("minihttp.transport.accept").setLevel(logging.NOTSET)

    mock_pool_cls.assert_called_once_with(2)
    mock_pool.submit.assert_called_once()
    task = mock_pool.submit.call_args.args[0]
    assert task.args[0] is client_sock
    assert task.args[1] == ("127.0.0.1", 12345)
    mock_pool.shutdown.assert_called_once_with(wait=True, timeout=1)

    accepted_record = find_event(caplog, "client_accepted")
    assert accepted_record is not None
    assert accepted_record.client == "127.0.0.1:12345"


def test_accept_loop_logs_accept_error(mock_args, mock_config, caplog):
    """Transient accept failures are logged and the loop continues."""
    caplog.set_level(logging.ERROR)
    lifecycle = MagicMock(spec=ServerLifecycle)
    lifecycle.should_stop.side_effect = [False, False, True]

    with patch("minihttp.transport.accept_loop.create_server_socket") as mock_create:
        mock_server_sock = MagicMock()
        mock_server_sock.accept.side_effect = OSError("Accept failed")
        mock_create.return_value = mock_server_sock

        run_server(mock_args, mock_config, lifecycle)

    error_record = find_event(caplog, "accept_error")
    assert error_record is not None
    assert error_record.error_type == "OSError"


def test_accept_loop_ignores_accept_timeouts(mock_args, mock_config, caplog):
    """Periodic accept timeouts only re-check the stop flag."""
    caplog.set_level(logging.DEBUG)
    lifecycle = MagicMock(spec=ServerLifecycle)
    lifecycle.should_stop.side_effect = [False, False, True]

    with patch("minihttp.transport.accept_loop.create_server_socket") as mock_create:
        mock_server_sock = MagicMock()
        mock_server_sock.accept.side_effect = socket.timeout("timed out")
        mock_create.return_value = mock_server_sock

        run_server(mock_args, mock_config, lifecycle)

    assert mock_server_sock.accept.call_count == 2
    assert find_event(caplog, "accept_error") is None


def test_accept_loop_closes_client_when_pool_closed(
    mock_args, mock_config, caplog
):
    """A closed pool stops the loop and releases the accepted socket."""
    caplog.set_level(logging.WARNING)
    lifecycle = MagicMock(spec=ServerLifecycle)
    lifecycle.should_stop.return_value = False

    with patch(
        "minihttp.transport.accept_loop.create_server_socket"
    ) as mock_create, patch("minihttp.transport.accept_loop.WorkerPool") as mock_pool_cls:
        mock_server_sock = MagicMock()
        client_sock = MagicMock()
        mock_server_sock.accept.return_value = (client_sock, ("127.0.0.1", 1))
        mock_create.return_value = mock_server_sock
        mock_pool = mock_pool_cls.return_value
        mock_pool.submit.side_effect = PoolClosed("closed")
        mock_pool.shutdown.return_value = True

        run_server(mock_args, mock_config, lifecycle)

    client_sock.close.assert_called_once()
    assert find_event(caplog, "pool_closed") is not None


def test_accept_loop_logs_shutdown_timeout(mock_args, mock_config, mock_lifecycle, caplog):
    """A pool that does not drain in the grace period is reported."""
    caplog.set_level(logging.WARNING)

    with patch(
        "minihttp.transport.accept_loop.create_server_socket"
    ) as mock_create, patch("minihttp.transport.accept_loop.WorkerPool") as mock_pool_cls:
        mock_server_sock = MagicMock()
        mock_server_sock.accept.side_effect = OSError("Stop loop")
        mock_create.return_value = mock_server_sock
        mock_pool_cls.return_value.shutdown.return_value = False

        run_server(mock_args, mock_config, mock_lifecycle)

    assert find_event(caplog, "shutdown_timeout") is not None


def test_lifecycle_begin_shutdown_is_idempotent(caplog):
    """The stop flag is set once and logged once."""
    caplog.set_level(logging.INFO, logger="minihttp.lifecycle")
    lifecycle = ServerLifecycle()
    assert not lifecycle.should_stop()

    lifecycle.begin_shutdown()
    lifecycle.begin_shutdown()

    assert lifecycle.should_stop()
    events = [getattr(r, "event", None) for r in caplog.records]
    assert events.count("shutdown_requested") == 1
