"""IPv4 + TCP header construction and parsing for raw-socket handshakes."""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass

IP_HEADER_LEN = 20
TCP_HEADER_LEN = 20
IP_ID = 54321
IP_TTL = 64
DEFAULT_WINDOW = 8192

_IP_FORMAT = "!BBHHHBBH4s4s"
_TCP_FORMAT = "!HHIIBBHHH"

_FIN = 0x01
_SYN = 0x02
_RST = 0x04
_PSH = 0x08
_ACK = 0x10
_URG = 0x20


@dataclass(frozen=True)
class TcpSegment:
    """The fields of a TCP header without options or payload."""

    source_port: int
    dest_port: int
    seq: int = 0
    ack_seq: int = 0
    syn: bool = False
    ack: bool = False
    fin: bool = False
    rst: bool = False
    psh: bool = False
    urg: bool = False
    window: int = DEFAULT_WINDOW
    check: int = 0
    urg_ptr: int = 0
    data_offset: int = 5

    def flags_summary(self) -> str:
        """Describe the main flags and the sequence number on one line."""
        return (
            f"SYN: {int(self.syn)} ACK: {int(self.ack)} FIN: {int(self.fin)} "
            f"RST: {int(self.rst)} PSH: {int(self.psh)} SEQ: {self.seq}"
        )

    def _flag_bits(self) -> int:
        bits = 0
        for flag, bit in (
            (self.fin, _FIN),
            (self.syn, _SYN),
            (self.rst, _RST),
            (self.psh, _PSH),
            (self.ack, _ACK),
            (self.urg, _URG),
        ):
            if flag:
                bits |= bit
        return bits


def checksum(data: bytes) -> int:
    """Return the 16-bit one's-complement Internet checksum of ``data``."""
    if len(data) % 2:
        data += b"\x00"
    total = sum(word for (word,) in struct.iter_unpack("!H", data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return ~total & 0xFFFF


def build_packet(src_ip: str, dst_ip: str, segment: TcpSegment) -> bytes:
    """Build an IPv4 header followed by the TCP header of ``segment``."""
    total_length = IP_HEADER_LEN + TCP_HEADER_LEN
    source = socket.inet_aton(src_ip)
    dest = socket.inet_aton(dst_ip)
    header = struct.pack(
        _IP_FORMAT,
        (4 << 4) | 5,
        0,
        total_length,
        IP_ID,
        0,
        IP_TTL,
        socket.IPPROTO_TCP,
        0,
        source,
        dest,
    )
    ip_check = checksum(header)
    header = header[:10] + struct.pack("!H", ip_check) + header[12:]
    tcp = struct.pack(
        _TCP_FORMAT,
        segment.source_port,
        segment.dest_port,
        segment.seq & 0xFFFFFFFF,
        segment.ack_seq & 0xFFFFFFFF,
        segment.data_offset << 4,
        segment._flag_bits(),
        segment.window,
        segment.check,
        segment.urg_ptr,
    )
    return header + tcp


def parse_packet(data: bytes) -> TcpSegment:
    """Extract the TCP header from an IPv4 packet.

    Raises ValueError if the packet is too short to hold both headers.
    """
    if len(data) < IP_HEADER_LEN:
        raise ValueError("packet shorter than an IPv4 header")
    ip_len = (data[0] & 0x0F) * 4
    if ip_len < IP_HEADER_LEN or len(data) < ip_len + TCP_HEADER_LEN:
        raise ValueError("packet too short to hold a TCP header")
    (
        source_port,
        dest_port,
        seq,
        ack_seq,
        offset,
        flags,
        window,
        check,
        urg_ptr,
    ) = struct.unpack_from(_TCP_FORMAT, data, ip_len)
    return TcpSegment(
        source_port=source_port,
        dest_port=dest_port,
        seq=seq,
        ack_seq=ack_seq,
        syn=bool(flags & _SYN),
        ack=bool(flags & _ACK),
        fin=bool(flags & _FIN),
        rst=bool(flags & _RST),
        psh=bool(flags & _PSH),
        urg=bool(flags & _URG),
        window=window,
        check=check,
        urg_ptr=urg_ptr,
        data_offset=offset >> 4,
    )