import io
import socket
import sys
import threading

import pytest

from netlab.chat_core import ChatRoom
from netlab.chat_server import ChatServer, main

PASSWORD = "password"
USERS = {"alice": PASSWORD, "bob": PASSWORD}


@pytest.fixture
def running():
    server = ChatServer(ChatRoom(USERS), ("127.0.0.1", 0))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server, thread
    server.shutdown()
    thread.join(timeout=5)


def _read_until(sock, expected, timeout=5.0):
    sock.settimeout(timeout)
    data = b""
    while expected.encode() not in data:
        chunk = sock.recv(1024)
        if not chunk:
            break
        data += chunk
    return data.decode()


def _read_to_eof(sock, timeout=5.0):
    sock.settimeout(timeout)
    data = b""
    while chunk := sock.recv(1024):
        data += chunk
    return data.decode()


def _login(server, username, password=PASSWORD):
    sock = socket.create_connection(server.server_address, timeout=5)
    _read_until(sock, "Enter username: ")
    sock.sendall(username.encode())
    _read_until(sock, "Enter password: ")
    sock.sendall(password.encode())
    return sock, _read_until(sock, "\n")


def test_prompts_are_sent_in_order(running):
    server, _ = running
    sock = socket.create_connection(server.server_address, timeout=5)
    with sock:
        assert _read_until(sock, "Enter username: ") == "Enter username: "
        sock.sendall(b"alice")
        assert _read_until(sock, "Enter password: ") == "Enter password: "


def test_successful_login_is_welcomed(running):
    server, _ = running
    sock, reply = _login(server, "alice")
    with sock:
        assert reply == "Welcome to the chat server!\n"


def test_wrong_credentials_close_connection(running):
    server, _ = running
    wrong = "secret"
    sock = socket.create_connection(server.server_address, timeout=5)
    with sock:
        _read_until(sock, "Enter username: ")
        sock.sendall(b"alice")
        _read_until(sock, "Enter password: ")
        sock.sendall(wrong.encode())
        assert _read_to_eof(sock) == "Error: Authentication failed.\n"


def test_duplicate_login_is_rejected(running):
    server, _ = running
    first, _ = _login(server, "alice")
    second, reply = _login(server, "alice")
    with first, second:
        assert reply == 'Error: User "alice" is already connected.\n'


def test_join_and_private_message(running):
    server, _ = running
    alice, _ = _login(server, "alice")
    bob, _ = _login(server, "bob")
    with alice, bob:
        assert "bob has joined the chat.\n" in _read_until(alice, "bob has joined")
        alice.sendall(b"/msg bob hi")
        assert _read_until(bob, "\n") == "[alice]: hi\n"


def test_group_creation_reply(running):
    server, _ = running
    alice, _ = _login(server, "alice")
    with alice:
        alice.sendall(b"/create_group team")
        assert _read_until(alice, "\n") == 'Group "team" created successfully.\n'


def test_exit_says_goodbye_and_notifies_others(running):
    server, _ = running
    alice, _ = _login(server, "alice")
    bob, _ = _login(server, "bob")
    with alice, bob:
        _read_until(alice, "bob has joined the chat.\n")
        alice.sendall(b"exit")
        assert _read_to_eof(alice) == "Goodbye.\n"
        assert "alice has left the chat.\n" in _read_until(bob, "has left the chat.\n")


def test_shutdown_stops_server_and_disconnects_clients(running):
    server, thread = running
    alice, _ = _login(server, "alice")
    with alice:
        server.shutdown()
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert _read_to_eof(alice) == ""


def test_main_reports_bind_failure(tmp_path, capsys):
    users_file = tmp_path / "users.txt"
    users_file.write_text("alice:password\n")
    occupier = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    with occupier:
        occupier.bind(("127.0.0.1", 0))
        occupier.listen(1)
        port = occupier.getsockname()[1]
        code = main(
            ["--host", "127.0.0.1", "--port", str(port), "--users", str(users_file)]
        )
    assert code == 1
    assert "Error: Unable to bind socket." in capsys.readouterr().err


def test_main_stops_on_console_exit(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("exit\n"))
    missing = tmp_path / "absent.txt"
    code = main(["--host", "127.0.0.1", "--port", "0", "--users", str(missing)])
    captured = capsys.readouterr()
    assert code == 0
    assert "Server shutting down..." in captured.out
    assert "Unable to open file" in captured.err