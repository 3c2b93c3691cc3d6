"""Protocol state for the group chat server.

The room tracks authenticated sessions, their usernames and chat groups.
It never touches sockets: every operation returns an :class:`Outcome`
listing the texts to deliver and to whom, so the network layer stays thin.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Delivery:
    """A piece of text to send to one session."""

    recipient: Hashable
    text: str


@dataclass(frozen=True)
class Outcome:
    """Deliveries produced by a room operation, and whether to close the sender."""

    deliveries: tuple[Delivery, ...] = field(default_factory=tuple)
    close: bool = False

    def texts_for(self, recipient: Hashable) -> list[str]:
        """Return the texts addressed to ``recipient``, in order."""
        return [d.text for d in self.deliveries if d.recipient == recipient]


class AuthenticationError(Exception):
    """The username is unknown or the password does not match."""

    def __init__(self) -> None:
        self.reply = "Error: Authentication failed.\n"
        super().__init__(self.reply.strip())


class AlreadyConnectedError(Exception):
    """The user already has an active session."""

    def __init__(self, username: str) -> None:
        self.username = username
        self.reply = f'Error: User "{username}" is already connected.\n'
        super().__init__(self.reply.strip())


def load_users(path: str | os.PathLike[str]) -> dict[str, str]:
    """Read ``username:password`` lines; lines without a colon are ignored."""
    users: dict[str, str] = {}
    with open(path, encoding="utf-8", newline="") as handle:
        for line in handle:
            line = line[:-1] if line.endswith("\n") else line
            username, sep, rest = line.partition(":")
            if sep:
                users[username] = rest
    return users


def _reply(session: Hashable, text: str, *, close: bool = False) -> Outcome:
    return Outcome((Delivery(session, text),), close)


class ChatRoom:
    """Users, sessions and groups of one chat server; safe to share between threads."""

    def __init__(self, users: Mapping[str, str]) -> None:
        self._users = dict(users)
        self._clients: dict[Hashable, str] = {}
        self._groups: dict[str, set[Hashable]] = {}
        self._lock = threading.RLock()

    def login(self, session: Hashable, username: str, password: str) -> Outcome:
        """Authenticate ``session``; announce it to others and welcome it."""
        if self._users.get(username) != password or username not in self._users:
            raise AuthenticationError()
        with self._lock:
            if username in self._clients.values():
                raise AlreadyConnectedError(username)
            self._clients[session] = username
            join = f"{username} has joined the chat.\n"
            deliveries = [Delivery(other, join) for other in self._others(session)]
        deliveries.append(Delivery(session, "Welcome to the chat server!\n"))
        return Outcome(tuple(deliveries))

    def logout(self, session: Hashable) -> Outcome:
        """Remove ``session`` and tell the remaining users that it left."""
        with self._lock:
            username = self._clients.get(session)
            if username is None:
                return Outcome()
            leave = f"{username} has left the chat.\n"
            deliveries = tuple(Delivery(other, leave) for other in self._others(session))
            del self._clients[session]
            for members in self._groups.values():
                members.discard(session)
        return Outcome(deliveries)

    def handle(self, session: Hashable, message: str) -> Outcome:
        """Process one message from a logged-in session.

        Raises KeyError if ``session`` has not logged in.
        """
        with self._lock:
            username = self._clients[session]
            if message == "exit":
                return _reply(session, "Goodbye.\n", close=True)
            if not message:
                return _reply(session, "Error: Message cannot be empty.\n")
            if message.startswith("/msg"):
                return self._private(session, username, message)
            if message.startswith("/broadcast"):
                return self._broadcast(session, username, message)
            if message.startswith("/create_group"):
                return self._create_group(session, message)
            if message.startswith("/join_group"):
                return self._join_group(session, message)
            if message.startswith("/group_msg"):
                return self._group_msg(session, message)
            if message.startswith("/leave_group"):
                return self._leave_group(session, message)
            return _reply(session, "Error: Unknown command.\n")

    def _others(self, session: Hashable) -> list[Hashable]:
        return [other for other in self._clients if other != session]

    @staticmethod
    def _argument(message: str, command: str) -> str | None:
        """Return the text after ``command`` and one space, or None if malformed."""
        size = len(command)
        if len(message) <= size or message[size] != " ":
            return None
        return message[size + 1:]

    def _private(self, session: Hashable, username: str, message: str) -> Outcome:
        space = message.find(" ", 5)
        if space == -1:
            return _reply(
                session, "Error: Incorrect format. Use: /msg <username> <message>\n"
            )
        target_user = message[5:space]
        content = message[space + 1:]
        if not content:
            return _reply(session, "Error: Private message content is empty.\n")
        target = next(
            (s for s, name in self._clients.items() if name == target_user), None
        )
        if target is None:
            return _reply(session, f'Error: User "{target_user}" not found.\n')
        if target == session:
            return _reply(
                session, "Error: Cannot send a private message to yourself.\n"
            )
        return Outcome((Delivery(target, f"[{username}]: {content}\n"),))

    def _broadcast(self, session: Hashable, username: str, message: str) -> Outcome:
        content = self._argument(message, "/broadcast")
        if content is None:
            return _reply(
                session, "Error: Incorrect format. Use: /broadcast <message>\n"
            )
        if not content:
            return _reply(session, "Error: Broadcast message content is empty.\n")
        text = f"[{username}] (Broadcast): {content}\n"
        return Outcome(tuple(Delivery(other, text) for other in self._others(session)))

    def _create_group(self, session: Hashable, message: str) -> Outcome:
        name = self._argument(message, "/create_group")
        if name is None:
            return _reply(
                session, "Error: Incorrect format. Use: /create_group <group name>\n"
            )
        if not name:
            return _reply(session, "Error: Group name cannot be empty.\n")
        if " " in name:
            return _reply(session, "Error: Group name must not contain spaces.\n")
        if name in self._groups:
            return _reply(session, f'Error: Group "{name}" already exists.\n')
        self._groups[name] = {session}
        return _reply(session, f'Group "{name}" created successfully.\n')

    def _join_group(self, session: Hashable, message: str) -> Outcome:
        name = self._argument(message, "/join_group")
        if name is None:
            return _reply(
                session, "Error: Incorrect format. Use: /join_group <group name>\n"
            )
        if not name:
            return _reply(session, "Error: Group name cannot be empty.\n")
        members = self._groups.get(name)
        if members is None:
            return _reply(session, f'Error: Group "{name}" does not exist.\n')
        if session in members:
            return _reply(session, f'Error: Already a member of group "{name}".\n')
        members.add(session)
        return _reply(session, f'Joined group "{name}" successfully.\n')

    def _group_msg(self, session: Hashable, message: str) -> Outcome:
        usage = "Error: Incorrect format. Use: /group_msg <group name> <message>\n"
        if self._argument(message, "/group_msg") is None:
            return _reply(session, usage)
        space = message.find(" ", 11)
        if space == -1:
            return _reply(session, usage)
        name = message[11:space]
        content = message[space + 1:]
        if not content:
            return _reply(session, "Error: Group message content is empty.\n")
        members = self._groups.get(name)
        if members is None:
            return _reply(session, f'Error: Group "{name}" does not exist.\n')
        if session not in members:
            return _reply(session, f'Error: Not a member of group "{name}".\n')
        text = f"[Group {name}]: {content}\n"
        return Outcome(
            tuple(Delivery(member, text) for member in members if member != session)
        )

    def _leave_group(self, session: Hashable, message: str) -> Outcome:
        name = self._argument(message, "/leave_group")
        if name is None:
            return _reply(
                session, "Error: Incorrect format. Use: /leave_group <group name>\n"
            )
        if not name:
            return _reply(session, "Error: Group name cannot be empty.\n")
        members = self._groups.get(name)
        if members is None:
            return _reply(session, f'Error: Group "{name}" does not exist.\n')
        if session not in members:
            return _reply(session, f'Error: Not a member of group "{name}".\n')
        members.discard(session)
        return _reply(session, f'Left group "{name}" successfully.\n')


def _users_from(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    return dict(pairs)