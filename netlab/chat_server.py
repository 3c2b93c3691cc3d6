"""Threaded TCP front end for :class:`~netlab.chat_core.ChatRoom`."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from collections.abc import Sequence

from netlab.chat_core import (
    AlreadyConnectedError,
    AuthenticationError,
    ChatRoom,
    Outcome,
    load_users,
)

PORT = 12345
BUFFER_SIZE = 1024
_POLL_INTERVAL = 0.2
_USERNAME_PROMPT = "Enter username: "
_SECOND_PROMPT = "Enter password: "


class ChatServer:
    """Accepts chat clients and serves each one on its own thread."""

    def __init__(self, room: ChatRoom, address: tuple[str, int] = ("", PORT)) -> None:
        self.room = room
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self._listener.bind(address)
            self._listener.listen(5)
        except OSError:
            self._listener.close()
            raise
        self._listener.settimeout(_POLL_INTERVAL)
        self.server_address: tuple[str, int] = self._listener.getsockname()
        self._stopped = threading.Event()
        self._connections: set[socket.socket] = set()
        self._connections_lock = threading.Lock()

    def __enter__(self) -> ChatServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def serve_forever(self) -> None:
        """Accept connections until :meth:`shutdown` is called."""
        while not self._stopped.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._stopped.is_set():
                    break
                print("Error: Failed to accept client connection.", file=sys.stderr)
                continue
            conn.settimeout(None)
            threading.Thread(
                target=self._handle_client, args=(conn,), daemon=True
            ).start()

    def shutdown(self) -> None:
        """Stop accepting clients and disconnect those still connected."""
        self._stopped.set()
        self._listener.close()
        with self._connections_lock:
            connections = list(self._connections)
        for conn in connections:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def _handle_client(self, conn: socket.socket) -> None:
        with self._connections_lock:
            self._connections.add(conn)
        try:
            self._serve_session(conn)
        finally:
            with self._connections_lock:
                self._connections.discard(conn)
            conn.close()

    def _serve_session(self, conn: socket.socket) -> None:
        username = self._ask(conn, _USERNAME_PROMPT)
        if username is None:
            return
        password = self._ask(conn, _SECOND_PROMPT)
        if password is None:
            return
        try:
            outcome = self.room.login(conn, username, password)
        except (AuthenticationError, AlreadyConnectedError) as exc:
            self._send(conn, exc.reply)
            return
        print(f"{username} connected.", flush=True)
        self._deliver(outcome)
        try:
            while (message := self._receive(conn)) is not None:
                outcome = self.room.handle(conn, message)
                self._deliver(outcome)
                if outcome.close:
                    break
        finally:
            self._deliver(self.room.logout(conn))
            print(f"{username} disconnected.", flush=True)

    def _ask(self, conn: socket.socket, prompt: str) -> str | None:
        self._send(conn, prompt)
        return self._receive(conn)

    @staticmethod
    def _receive(conn: socket.socket) -> str | None:
        try:
            data = conn.recv(BUFFER_SIZE)
        except OSError:
            return None
        return data.decode("utf-8", errors="replace") if data else None

    @staticmethod
    def _send(conn: socket.socket, text: str) -> None:
        try:
            conn.sendall(text.encode("utf-8"))
        except OSError:
            pass

    def _deliver(self, outcome: Outcome) -> None:
        for delivery in outcome.deliveries:
            self._send(delivery.recipient, delivery.text)


def _watch_console(server: ChatServer) -> None:
    for line in sys.stdin:
        if line.rstrip("\r\n") == "exit":
            print("Server shutting down...", flush=True)
            server.shutdown()
            return


def main(argv: Sequence[str] | None = None) -> int:
    """Run the chat server; type ``exit`` on the console to stop it."""
    parser = argparse.ArgumentParser(description="Group chat server.")
    parser.add_argument("--users", default="users.txt", help="credentials file")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=PORT, help="port to listen on")
    args = parser.parse_args(argv)

    try:
        users = load_users(args.users)
    except OSError:
        print(f'Error: Unable to open file "{args.users}".', file=sys.stderr)
        users = {}

    try:
        server = ChatServer(ChatRoom(users), (args.host, args.port))
    except OSError:
        print("Error: Unable to bind socket.", file=sys.stderr)
        return 1

    print(f"Server is now listening on port {server.server_address[1]}...", flush=True)
    threading.Thread(target=_watch_console, args=(server,), daemon=True).start()
    server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())