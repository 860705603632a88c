"""A source NAT that rewrites IPv4 TCP/UDP frames through one external address.

Outbound flows get a fresh external port and two table entries: one for the
flow itself and one for the reply direction. Replies are translated back to
the internal endpoint. IP and transport checksums are patched incrementally.
"""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field

from xdplab.packet import (
    ETH_HLEN,
    ETH_P_IP,
    IPPROTO_TCP,
    IPPROTO_UDP,
    IPV4_HLEN,
    TCP_HLEN,
    UDP_HLEN,
    XdpAction,
)

NAT_EXTERNAL_ADDRESS = 0x0B000001
DEFAULT_MAX_ENTRIES_NAT_TABLE = 100000
MAX_FREE_PORTS_ENTRIES = 50000
FIRST_FREE_PORT = 10000

# More-fragments flag plus fragment offset, in network byte order.
PCKT_FRAGMENTED = 0x3FFF
F_SYN_SET = 1 << 1
NO_FLAGS = 0

IPV6_HLEN = 40
ICMP_HLEN = 8
ICMP6_HLEN = 8

_MASK16 = 0xFFFF
_MASK32 = 0xFFFFFFFF

_L4_HEADER_LEN = {IPPROTO_TCP: TCP_HLEN, IPPROTO_UDP: UDP_HLEN}
# Offset of the checksum inside the transport header and the bytes it spans
# past that point that must be present in the frame.
_L4_CSUM = {IPPROTO_UDP: (6, 2), IPPROTO_TCP: (16, 4)}


@dataclass(frozen=True)
class FlowKey:
    """Addresses, ports and protocol identifying one direction of a flow."""

    src: int
    dst: int
    src_port: int
    dst_port: int
    proto: int


@dataclass(frozen=True)
class Binding:
    """The address and port a flow is translated to."""

    addr: int
    port: int


def csum_fold(csum: int) -> int:
    """Fold a 32-bit partial checksum into a complemented 16-bit checksum."""
    csum &= _MASK32
    total = (csum >> 16) + (csum & _MASK16)
    total += total >> 16
    return ~total & _MASK16


def csum_diff(old: bytes, new: bytes, seed: int = 0) -> int:
    """Return the 32-bit partial checksum for replacing ``old`` with ``new``.

    Both buffers are read as big-endian 32-bit words; their lengths must be
    multiples of four.
    """
    if len(old) % 4 or len(new) % 4:
        raise ValueError("checksum diff buffers must be a multiple of 4 bytes long")
    total = seed & _MASK32
    total += sum(~word & _MASK32 for (word,) in struct.iter_unpack("!I", old))
    total += sum(word for (word,) in struct.iter_unpack("!I", new))
    while total >> 32:
        total = (total & _MASK32) + (total >> 32)
    return total


def calc_offset(is_ipv6: bool, is_icmp: bool) -> int:
    """Return the offset of the transport header, past an ICMP-quoted header if asked."""
    if is_ipv6:
        offset = ETH_HLEN + IPV6_HLEN
        if is_icmp:
            offset += ICMP6_HLEN + IPV6_HLEN
    else:
        offset = ETH_HLEN + IPV4_HLEN
        if is_icmp:
            offset += ICMP_HLEN + IPV4_HLEN
    return offset


def _to_address(value: int | str) -> int:
    return int(ipaddress.IPv4Address(value))


@dataclass
class XdpNat:
    """NAT frame handler holding the binding table and the next free port."""

    external_address: int | str = NAT_EXTERNAL_ADDRESS
    first_port: int = FIRST_FREE_PORT
    max_entries: int = DEFAULT_MAX_ENTRIES_NAT_TABLE
    table: dict[FlowKey, Binding] = field(init=False, default_factory=dict)
    next_port: int = field(init=False)

    def __post_init__(self) -> None:
        self.external_address = _to_address(self.external_address)
        if not 0 <= self.first_port <= _MASK16:
            raise ValueError(f"port {self.first_port!r} does not fit in 16 bits")
        if self.max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.next_port = self.first_port

    def _insert(self, key: FlowKey, value: Binding) -> bool:
        if key not in self.table and len(self.table) >= self.max_entries:
            return False
        self.table[key] = value
        return True

    def process(self, frame: bytes) -> tuple[XdpAction, bytes]:
        """Translate one Ethernet frame; return the verdict and the resulting frame."""
        buf = bytearray(frame)
        if len(buf) < ETH_HLEN:
            return XdpAction.DROP, bytes(buf)
        (eth_proto,) = struct.unpack_from("!H", buf, ETH_HLEN - 2)
        if eth_proto != ETH_P_IP:
            return XdpAction.PASS, bytes(buf)
        return self._process_ipv4(buf), bytes(buf)

    def _process_ipv4(self, buf: bytearray) -> XdpAction:
        ip = ETH_HLEN
        if len(buf) < ip + IPV4_HLEN:
            return XdpAction.DROP

        protocol = buf[ip + 9]
        if buf[ip] & 0x0F != 5:
            return XdpAction.DROP
        (frag_off,) = struct.unpack_from("!H", buf, ip + 6)
        if frag_off & PCKT_FRAGMENTED:
            return XdpAction.DROP
        src, dst = struct.unpack_from("!II", buf, ip + 12)

        l4 = ip + IPV4_HLEN
        l4_len = _L4_HEADER_LEN.get(protocol)
        if l4_len is None or len(buf) < l4 + l4_len:
            return XdpAction.DROP
        sport, dport = struct.unpack_from("!HH", buf, l4)

        flow = FlowKey(src, dst, sport, dport, protocol)
        binding = self.table.get(flow)
        external = self.external_address

        if dst != external:
            if binding is None:
                port = self.next_port
                if not self._insert(flow, Binding(external, port)):
                    return XdpAction.DROP
                reply = FlowKey(dst, external, dport, port, protocol)
                if not self._insert(reply, Binding(src, sport)):
                    return XdpAction.DROP
                new_sport = port
                self.next_port = (port + 1) & _MASK16
            else:
                new_sport = binding.port
            new_ports = (new_sport, dport)
            new_addr = external
            addr_off = ip + 12
        else:
            if binding is None:
                return XdpAction.DROP
            new_ports = (sport, binding.port)
            new_addr = binding.addr
            addr_off = ip + 16

        old_addr_bytes = bytes(buf[addr_off : addr_off + 4])
        new_addr_bytes = new_addr.to_bytes(4, "big")
        old_ports_bytes = bytes(buf[l4 : l4 + 4])
        new_ports_bytes = struct.pack("!HH", *new_ports)

        (ip_check,) = struct.unpack_from("!H", buf, ip + 10)
        ip_check = csum_fold(csum_diff(old_addr_bytes, new_addr_bytes, ~ip_check & _MASK32))
        struct.pack_into("!H", buf, ip + 10, ip_check)

        csum_rel, span = _L4_CSUM[protocol]
        csum_off = l4 + csum_rel
        if csum_off + span > len(buf):
            return XdpAction.DROP
        (l4_check,) = struct.unpack_from("!H", buf, csum_off)
        l4_check = csum_fold(csum_diff(old_ports_bytes, new_ports_bytes, ~l4_check & _MASK32))
        l4_check = csum_fold(csum_diff(old_addr_bytes, new_addr_bytes, ~l4_check & _MASK32))
        struct.pack_into("!H", buf, csum_off, l4_check)

        buf[l4 : l4 + 4] = new_ports_bytes
        buf[addr_off : addr_off + 4] = new_addr_bytes
        return XdpAction.TX