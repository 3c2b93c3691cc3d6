"""Interactive client for the group chat server."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from collections.abc import Callable, Sequence

from netlab.chat_core import AuthenticationError

HOST = "127.0.0.1"
PORT = 12345
BUFFER_SIZE = 1024


def _recv_text(sock: socket.socket) -> str:
    data = sock.recv(BUFFER_SIZE)
    if not data:
        raise ConnectionError("Disconnected from server.")
    return data.decode("utf-8", errors="replace")


def authenticate(
    sock: socket.socket,
    read_line: Callable[[], str],
    write: Callable[[str], object],
) -> str:
    """Answer the server's username and password prompts.

    Returns the server's reply; raises AuthenticationError when it reports
    failure and ConnectionError if the server hangs up.
    """
    for _ in range(2):
        write(_recv_text(sock))
        sock.sendall(read_line().encode("utf-8"))
    result = _recv_text(sock)
    write(result + "\n")
    if "Authentication failed" in result:
        raise AuthenticationError()
    return result


def receive_loop(sock: socket.socket, write: Callable[[str], object]) -> None:
    """Write everything the server sends until the connection ends."""
    while True:
        try:
            data = sock.recv(BUFFER_SIZE)
        except OSError:
            data = b""
        if not data:
            write("Disconnected from server.\n")
            return
        write(data.decode("utf-8", errors="replace") + "\n")


def _close(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


def send_loop(sock: socket.socket, read_line: Callable[[], str]) -> None:
    """Send each non-empty line; ``/exit`` closes the connection.

    Returns at end of input (``read_line`` raising EOFError) or after ``/exit``.
    """
    while True:
        try:
            message = read_line()
        except EOFError:
            return
        if not message:
            continue
        sock.sendall(message.encode("utf-8"))
        if message == "/exit":
            _close(sock)
            return


def main(argv: Sequence[str] | None = None) -> int:
    """Connect to the chat server and relay the console to it."""
    parser = argparse.ArgumentParser(description="Group chat client.")
    parser.add_argument("--host", default=HOST, help="server address")
    parser.add_argument("--port", type=int, default=PORT, help="server port")
    args = parser.parse_args(argv)

    output_lock = threading.Lock()

    def write(text: str) -> None:
        with output_lock:
            sys.stdout.write(text)
            sys.stdout.flush()

    def read_line() -> str:
        line = sys.stdin.readline()
        if not line:
            raise EOFError
        return line.removesuffix("\n")

    try:
        sock = socket.create_connection((args.host, args.port))
    except OSError:
        print("Error connecting to server.", file=sys.stderr)
        return 1

    print("Connected to the server.", flush=True)
    try:
        authenticate(sock, read_line, write)
    except (AuthenticationError, ConnectionError, EOFError):
        sock.close()
        return 1

    threading.Thread(target=send_loop, args=(sock, read_line), daemon=True).start()
    receive_loop(sock, write)
    sock.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())