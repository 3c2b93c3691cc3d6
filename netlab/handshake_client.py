"""Client side of a three-way TCP handshake performed over a raw socket."""

from __future__ import annotations

import argparse
import socket
import sys
import time
from collections.abc import Sequence

from netlab.packets import TcpSegment, build_packet, parse_packet

SERVER_IP = "127.0.0.1"
SERVER_PORT = 12345
CLIENT_IP = "127.0.0.1"
CLIENT_PORT = 54321
CLIENT_SYN_SEQ = 200
SERVER_SYN_SEQ = 400
CLIENT_ACK_SEQ = 600
TIMEOUT_SECONDS = 5.0
_RECV_SIZE = 65536


class HandshakeError(Exception):
    """No valid SYN-ACK arrived before the timeout."""


def is_valid_syn_ack(segment: TcpSegment) -> bool:
    """Return True if ``segment`` is a SYN-ACK acknowledging our SYN."""
    return segment.syn and segment.ack and segment.ack_seq == CLIENT_SYN_SEQ + 1


def open_raw_socket() -> socket.socket:
    """Open a raw TCP socket whose packets carry our own IP header."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_TCP)
    try:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_HDRINCL, 1)
    except OSError:
        sock.close()
        raise
    return sock


def _send(
    sock: socket.socket,
    client_ip: str,
    server_ip: str,
    server_port: int,
    segment: TcpSegment,
) -> None:
    sock.sendto(build_packet(client_ip, server_ip, segment), (server_ip, server_port))
    if segment.syn and not segment.ack:
        print(f"[+] Sent SYN packet with sequence {segment.seq}", flush=True)
    elif segment.ack and not segment.syn:
        print(f"[+] Sent ACK packet with sequence {segment.seq}", flush=True)
    else:
        print("[+] Sent packet", flush=True)


def perform_handshake(
    sock: socket.socket,
    client_ip: str = CLIENT_IP,
    server_ip: str = SERVER_IP,
    client_port: int = CLIENT_PORT,
    server_port: int = SERVER_PORT,
    timeout: float = TIMEOUT_SECONDS,
) -> TcpSegment:
    """Send SYN, wait for a valid SYN-ACK, then send the final ACK.

    Returns the SYN-ACK received; raises HandshakeError on timeout.
    """
    _send(
        sock,
        client_ip,
        server_ip,
        server_port,
        TcpSegment(client_port, server_port, seq=CLIENT_SYN_SEQ, syn=True),
    )

    deadline = time.monotonic() + timeout
    while (remaining := deadline - time.monotonic()) > 0:
        sock.settimeout(remaining)
        try:
            data, _ = sock.recvfrom(_RECV_SIZE)
        except TimeoutError:
            continue
        except OSError as exc:
            print(f"recvfrom() failed: {exc}", file=sys.stderr)
            continue
        try:
            reply = parse_packet(data)
        except ValueError:
            continue
        print(
            f"[DEBUG] Received packet flags: SYN={int(reply.syn)} "
            f"ACK={int(reply.ack)} Seq={reply.seq} Ack={reply.ack_seq}",
            flush=True,
        )
        if is_valid_syn_ack(reply):
            break
    else:
        raise HandshakeError("Timeout or invalid SYN-ACK received. Handshake failed.")

    print("[+] Received valid SYN-ACK from server.", flush=True)
    _send(
        sock,
        client_ip,
        server_ip,
        server_port,
        TcpSegment(
            client_port,
            server_port,
            seq=CLIENT_ACK_SEQ,
            ack_seq=SERVER_SYN_SEQ + 1,
            ack=True,
        ),
    )
    print("[+] Handshake complete.", flush=True)
    return reply


def main(argv: Sequence[str] | None = None) -> int:
    """Run the client half of the handshake; needs raw-socket privileges."""
    parser = argparse.ArgumentParser(description="Raw-socket TCP handshake client.")
    parser.add_argument("--client-ip", default=CLIENT_IP)
    parser.add_argument("--server-ip", default=SERVER_IP)
    parser.add_argument("--client-port", type=int, default=CLIENT_PORT)
    parser.add_argument("--server-port", type=int, default=SERVER_PORT)
    parser.add_argument("--timeout", type=float, default=TIMEOUT_SECONDS)
    args = parser.parse_args(argv)

    try:
        sock = open_raw_socket()
    except OSError as exc:
        print(f"Socket creation failed: {exc}", file=sys.stderr)
        return 1
    with sock:
        try:
            perform_handshake(
                sock,
                args.client_ip,
                args.server_ip,
                args.client_port,
                args.server_port,
                args.timeout,
            )
        except HandshakeError:
            print(
                "[-] Timeout or invalid SYN-ACK received. Handshake failed.",
                file=sys.stderr,
            )
            return 1
        except OSError as exc:
            print(f"sendto() failed: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())