"""Ethernet/IPv4 frame parsing into the 5-tuple used by the flow sketch."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

ETH_HLEN = 14
VLAN_HLEN = 4
IPV4_HLEN = 20
TCP_HLEN = 20
UDP_HLEN = 8

ETH_P_IP = 0x0800
ETH_P_IPV6 = 0x86DD
ETH_P_8021Q = 0x8100
ETH_P_8021AD = 0x88A8

IPPROTO_TCP = 6
IPPROTO_UDP = 17

MAX_VLAN_TAGS = 2

_VLAN_TYPES = frozenset({ETH_P_8021Q, ETH_P_8021AD})
_L4_HEADER_LEN = {IPPROTO_TCP: TCP_HLEN, IPPROTO_UDP: UDP_HLEN}


class XdpAction(IntEnum):
    """Verdicts an XDP program returns for a frame."""

    ABORTED = 0
    DROP = 1
    PASS = 2
    TX = 3
    REDIRECT = 4


_TUPLE_FORMAT = struct.Struct("!IIHHB")


@dataclass(frozen=True)
class FiveTuple:
    """Source/destination addresses and ports plus the IP protocol of a packet."""

    src_ip: int
    dst_ip: int
    src_port: int
    dst_port: int
    proto: int

    SIZE: ClassVar[int] = _TUPLE_FORMAT.size

    def pack(self) -> bytes:
        """Return the packed 13-byte key with every field in network byte order."""
        return _TUPLE_FORMAT.pack(
            self.src_ip, self.dst_ip, self.src_port, self.dst_port, self.proto
        )


def parse_five_tuple(frame: bytes) -> FiveTuple | None:
    """Extract the 5-tuple of a TCP or UDP over IPv4 frame.

    Up to two VLAN tags are skipped. Returns ``None`` for frames that are
    truncated, not IPv4, or carry neither TCP nor UDP.
    """
    buf = bytes(frame)
    if len(buf) < ETH_HLEN:
        return None

    (eth_proto,) = struct.unpack_from("!H", buf, ETH_HLEN - 2)
    offset = ETH_HLEN
    for _ in range(MAX_VLAN_TAGS):
        if eth_proto in _VLAN_TYPES:
            offset += VLAN_HLEN
            if offset > len(buf):
                return None
            (eth_proto,) = struct.unpack_from("!H", buf, offset - 2)

    if eth_proto != ETH_P_IP:
        return None
    if offset + IPV4_HLEN > len(buf):
        return None

    ip_proto = buf[offset + 9]
    src_ip, dst_ip = struct.unpack_from("!II", buf, offset + 12)

    l4_len = _L4_HEADER_LEN.get(ip_proto)
    if l4_len is None:
        return None
    l4_offset = offset + IPV4_HLEN
    if l4_offset + l4_len > len(buf):
        return None

    src_port, dst_port = struct.unpack_from("!HH", buf, l4_offset)
    return FiveTuple(src_ip, dst_ip, src_port, dst_port, ip_proto)