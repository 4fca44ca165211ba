from __future__ import annotations

import socket
import socketserver
import threading

import pytest
from click.testing import CliRunner

from socket_serial.cli import main


class _EchoHandler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        data = self.request.recv(4096)
        if data:
            self.request.sendall(data)


@pytest.fixture
def echo_server():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), _EchoHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"tcp://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def runner():
    return CliRunner()


def test_send_string(runner, echo_server, tmp_path) -> None:
    result = runner.invoke(main, ["--config", str(tmp_path / "none.toml"), "send", echo_server, "-s", "hello"])
    assert result.exit_code == 0, result.output
    assert "Sent 5 bytes" in result.output
    assert "Received 5 bytes: 'hello'" in result.output


def test_send_hex_uses_config(runner, echo_server, tmp_path) -> None:
    cfg = tmp_path / "socket_serial.toml"
    cfg.write_text('[port]\nmax_read = 2\ntimeout = 5.0\n')
    result = runner.invoke(main, ["--config", str(cfg), "send", echo_server, "-x", "ff fe fd"])
    assert result.exit_code == 0, result.output
    assert "Received 2 bytes: ff fe" in result.output


def test_send_rejects_both_payloads(runner, echo_server) -> None:
    result = runner.invoke(main, ["send", echo_server, "-s", "a", "-x", "00"])
    assert result.exit_code != 0
    assert "Use only one of -s or -x" in result.output


def test_send_bad_address(runner) -> None:
    result = runner.invoke(main, ["send", "tcp://:9999", "-s", "a"])
    assert result.exit_code == 1
    assert "hostname is not specified" in result.output


def test_send_connection_refused(runner) -> None:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    result = runner.invoke(main, ["send", f"tcp://127.0.0.1:{port}", "-s", "a"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_status(runner, echo_server) -> None:
    result = runner.invoke(main, ["status", echo_server, "-b", "19200"])
    assert result.exit_code == 0, result.output
    assert "CTS=1 DSR=1 DCD=0" in result.output
    assert "Baud rate: 19200" in result.output
    assert "Settings: 8N1" in result.output


def test_list(runner) -> None:
    result = runner.invoke(main, ["list"])
    assert result.exit_code == 0
    assert "No ports available" in result.output


def test_server_url_bounded_by_open_timeout(runner, sock_path) -> None:
    result = runner.invoke(main, ["status", f"unix-server://{sock_path}", "--open-timeout", "0.2"])
    assert result.exit_code == 1
    assert "No connection to unix-server://" in result.output
    assert "within 0.2 seconds" in result.output


def test_send_help_mentions_server_wait(runner) -> None:
    result = runner.invoke(main, ["send", "--help"])
    assert result.exit_code == 0
    assert "--open-timeout" in result.output
