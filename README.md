# netlab

A set of small networking tools:

- a multi-user TCP chat server with private messages, broadcasts and groups,
  and a terminal client for it;
- the client half of a three-way TCP handshake carried out by hand over raw
  sockets, with the packet building and parsing it relies on;
- a routing simulator that builds routing tables with distance vector and
  link state routing.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Group chat

The server reads accounts from a credentials file, one `username:password`
pair per line (lines without a colon are ignored):

```
alice:password
bob:password
```

Start the server:

```
netlab-chat-server
```

Options:

- `--users` – credentials file (default `users.txt`);
- `--host` – address to listen on (default: all addresses);
- `--port` – port to listen on (default 12345).

Typing `exit` in the server's terminal shuts it down.

Connect a client:

```
netlab-chat-client
```

Options: `--host` (default `127.0.0.1`) and `--port` (default 12345).

The client answers the server's username and password prompts from the
terminal. Once logged in, every non-empty line you type is sent to the server;
typing `/exit` closes the connection.

| Command | Effect |
| --- | --- |
| `/msg <username> <message>` | private message to one user |
| `/broadcast <message>` | message to every other connected user |
| `/create_group <group name>` | create a group (no spaces in the name) and join it |
| `/join_group <group name>` | join an existing group |
| `/group_msg <group name> <message>` | message to the other members of a group you belong to |
| `/leave_group <group name>` | leave a group |
| `exit` | end the session |

Other users are told when someone joins or leaves the chat. A username may be
logged in only once at a time.

The chat rules live in `netlab.chat_core.ChatRoom`, which can be used without
any sockets: `login`, `handle` and `logout` return an `Outcome` listing the
`Delivery` items to send instead of sending them, so the room can sit behind
any transport. `login` raises `AuthenticationError` or
`AlreadyConnectedError`. `netlab.chat_core.load_users` reads a credentials
file into a dictionary. `netlab.chat_server.ChatServer` serves a room over
TCP (`serve_forever`, `shutdown`, and use as a context manager).

## Raw TCP handshake

`netlab-handshake-client` opens a raw socket, sends a SYN with sequence
number 200, waits for a SYN-ACK whose acknowledgement number is 201, then
sends the final ACK (sequence 600, acknowledgement 401).

```
sudo netlab-handshake-client
```

Options: `--client-ip`, `--server-ip` (both default `127.0.0.1`),
`--client-port` (default 54321), `--server-port` (default 12345) and
`--timeout` (seconds, default 5). If no valid SYN-ACK arrives in time the
command reports the failure and exits with status 1.

It needs raw socket access, so run it as root (or with `CAP_NET_RAW`) on
Linux. The same steps are available as `open_raw_socket`,
`perform_handshake`, `is_valid_syn_ack` and `HandshakeError` in
`netlab.handshake_client`. The packet building and parsing in
`netlab.packets` (`checksum`, `build_packet`, `parse_packet`, `TcpSegment`
and its `flags_summary`) works without any privileges.

### What is not included

The package has no server half for the handshake: nothing here listens for
the SYN and answers with the SYN-ACK. To complete a handshake, the client
needs a peer that replies to its SYN with a SYN-ACK acknowledging
sequence 201.

## Routing simulation

`netlab-routing` reads an adjacency matrix from a file: the number of nodes,
then the matrix row by row, whitespace separated, with `9999` for "no link":

```
4
0 10 15 9999
10 0 35 25
15 35 0 30
9999 25 30 0
```

```
netlab-routing topology.txt
```

It prints each node's routing table (destination, cost, next hop) computed
first by distance vector routing and then by link state routing (Dijkstra
from every node). The same steps are available from `netlab.routing`:
`read_graph`, `parse_graph`, `distance_vector`, `link_state`,
`next_hop_from_prev`, `format_dvr_table` and `format_lsr_table`.