import pytest

from netlab.chat_core import (
    AlreadyConnectedError,
    AuthenticationError,
    ChatRoom,
    Delivery,
    Outcome,
    load_users,
)


@pytest.fixture
def room():
    chat = ChatRoom({"alice": "password", "bob": "password", "carol": "secret"})
    chat.login(1, "alice", "password")
    chat.login(2, "bob", "password")
    return chat


def test_load_users_parses_pairs(tmp_path):
    path = tmp_path / "users.txt"
    path.write_text("alice:password\nbob:secret\nnocolon\n", encoding="utf-8")
    assert load_users(path) == {"alice": "password", "bob": "secret"}


def test_load_users_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_users(tmp_path / "absent.txt")


def test_login_welcomes_and_announces():
    chat = ChatRoom({"alice": "password", "bob": "password"})
    first = chat.login(1, "alice", "password")
    assert first.deliveries == (Delivery(1, "Welcome to the chat server!\n"),)
    second = chat.login(2, "bob", "password")
    assert second.texts_for(1) == ["bob has joined the chat.\n"]
    assert second.texts_for(2) == ["Welcome to the chat server!\n"]


@pytest.mark.parametrize("username,secret", [("alice", "secret"), ("dave", "password")])
def test_login_rejects_bad_credentials(username, secret):
    chat = ChatRoom({"alice": "password"})
    with pytest.raises(AuthenticationError) as info:
        chat.login(1, username, secret)
    assert info.value.reply == "Error: Authentication failed.\n"


def test_login_rejects_duplicate(room):
    with pytest.raises(AlreadyConnectedError) as info:
        room.login(3, "alice", "password")
    assert info.value.reply == 'Error: User "alice" is already connected.\n'


def test_exit_closes(room):
    outcome = room.handle(1, "exit")
    assert outcome == Outcome((Delivery(1, "Goodbye.\n"),), close=True)


def test_empty_message(room):
    assert room.handle(1, "").texts_for(1) == ["Error: Message cannot be empty.\n"]


def test_unknown_command(room):
    assert room.handle(1, "hello").texts_for(1) == ["Error: Unknown command.\n"]


def test_handle_requires_login(room):
    with pytest.raises(KeyError):
        room.handle(99, "/broadcast hi")


def test_private_message(room):
    outcome = room.handle(1, "/msg bob hi there")
    assert outcome.deliveries == (Delivery(2, "[alice]: hi there\n"),)


def test_private_message_errors(room):
    assert room.handle(1, "/msg bob").texts_for(1) == [
        "Error: Incorrect format. Use: /msg <username> <message>\n"
    ]
    assert room.handle(1, "/msg bob ").texts_for(1) == [
        "Error: Private message content is empty.\n"
    ]
    assert room.handle(1, "/msg alice hi").texts_for(1) == [
        "Error: Cannot send a private message to yourself.\n"
    ]
    assert room.handle(1, "/msg zed hi").texts_for(1) == [
        'Error: User "zed" not found.\n'
    ]


def test_broadcast_reaches_everyone_else(room):
    room.login(3, "carol", "secret")
    outcome = room.handle(1, "/broadcast hello all")
    recipients = {d.recipient for d in outcome.deliveries}
    assert recipients == {2, 3}
    assert outcome.texts_for(3) == ["[alice] (Broadcast): hello all\n"]


def test_broadcast_errors(room):
    assert room.handle(1, "/broadcast").texts_for(1) == [
        "Error: Incorrect format. Use: /broadcast <message>\n"
    ]
    assert room.handle(1, "/broadcast ").texts_for(1) == [
        "Error: Broadcast message content is empty.\n"
    ]


def test_create_group(room):
    assert room.handle(1, "/create_group team").texts_for(1) == [
        'Group "team" created successfully.\n'
    ]
    assert room.handle(2, "/create_group team").texts_for(2) == [
        'Error: Group "team" already exists.\n'
    ]


def test_create_group_errors(room):
    assert room.handle(1, "/create_group").texts_for(1) == [
        "Error: Incorrect format. Use: /create_group <group name>\n"
    ]
    assert room.handle(1, "/create_group ").texts_for(1) == [
        "Error: Group name cannot be empty.\n"
    ]
    assert room.handle(1, "/create_group a b").texts_for(1) == [
        "Error: Group name must not contain spaces.\n"
    ]


def test_join_group(room):
    assert room.handle(2, "/join_group team").texts_for(2) == [
        'Error: Group "team" does not exist.\n'
    ]
    room.handle(1, "/create_group team")
    assert room.handle(2, "/join_group team").texts_for(2) == [
        'Joined group "team" successfully.\n'
    ]
    assert room.handle(2, "/join_group team").texts_for(2) == [
        'Error: Already a member of group "team".\n'
    ]


def test_group_message_goes_to_members_only(room):
    room.login(3, "carol", "secret")
    room.handle(1, "/create_group team")
    room.handle(2, "/join_group team")
    outcome = room.handle(1, "/group_msg team lunch?")
    assert outcome.deliveries == (Delivery(2, "[Group team]: lunch?\n"),)


def test_group_message_errors(room):
    usage = "Error: Incorrect format. Use: /group_msg <group name> <message>\n"
    assert room.handle(1, "/group_msg").texts_for(1) == [usage]
    assert room.handle(1, "/group_msg team").texts_for(1) == [usage]
    assert room.handle(1, "/group_msg team ").texts_for(1) == [
        "Error: Group message content is empty.\n"
    ]
    assert room.handle(1, "/group_msg team hi").texts_for(1) == [
        'Error: Group "team" does not exist.\n'
    ]
    room.handle(1, "/create_group team")
    assert room.handle(2, "/group_msg team hi").texts_for(2) == [
        'Error: Not a member of group "team".\n'
    ]


def test_leave_group(room):
    room.handle(1, "/create_group team")
    room.handle(2, "/join_group team")
    assert room.handle(2, "/leave_group team").texts_for(2) == [
        'Left group "team" successfully.\n'
    ]
    assert room.handle(2, "/leave_group team").texts_for(2) == [
        'Error: Not a member of group "team".\n'
    ]
    assert room.handle(2, "/leave_group other").texts_for(2) == [
        'Error: Group "other" does not exist.\n'
    ]
    assert room.handle(1, "/group_msg team hi").deliveries == ()


def test_leave_group_errors(room):
    assert room.handle(1, "/leave_group").texts_for(1) == [
        "Error: Incorrect format. Use: /leave_group <group name>\n"
    ]
    assert room.handle(1, "/leave_group ").texts_for(1) == [
        "Error: Group name cannot be empty.\n"
    ]


def test_logout_announces_and_frees_name(room):
    outcome = room.logout(1)
    assert outcome.deliveries == (Delivery(2, "alice has left the chat.\n"),)
    assert room.handle(2, "/msg alice hi").texts_for(2) == [
        'Error: User "alice" not found.\n'
    ]
    again = room.login(3, "alice", "password")
    assert again.texts_for(3) == ["Welcome to the chat server!\n"]


def test_logout_unknown_session_is_quiet(room):
    assert room.logout(42).deliveries == ()


def test_logout_removes_group_membership(room):
    room.handle(1, "/create_group team")
    room.handle(2, "/join_group team")
    room.logout(2)
    assert room.handle(1, "/group_msg team hi").deliveries == ()