"""A TCP-only source NAT with separate outbound and reply tables.

Frames from the internal range get the NAT address and a fresh port as
their source; frames addressed to the NAT address are mapped back to the
internal endpoint. Only addresses and ports are rewritten; checksums are
left as they are.
"""

from __future__ import annotations

import struct

from xdplab.nat import Binding, FlowKey
from xdplab.packet import ETH_HLEN, ETH_P_IP, IPPROTO_TCP, IPV4_HLEN, TCP_HLEN, XdpAction

INTERNAL_IP_START = 0xC0A80001
INTERNAL_IP_END = 0xC0A800FE

EXTERNAL_IP_START = 0x0A000001
EXTERNAL_IP_END = 0x0A0000FE

NAT_IP = 0x0B000001
NAT_SIZE = 16384
FIRST_FREE_PORT = 10000

_MASK16 = 0xFFFF
_SRC_ADDR_OFF = 12
_DST_ADDR_OFF = 16


class SimpleNat:
    """NAT frame handler keeping one table per direction."""

    def __init__(self, first_port: int = FIRST_FREE_PORT, max_entries: int = NAT_SIZE) -> None:
        if not 0 <= first_port <= _MASK16:
            raise ValueError(f"port {first_port!r} does not fit in 16 bits")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.next_port = first_port
        self.max_entries = max_entries
        self.internal_external: dict[FlowKey, Binding] = {}
        self.external_nat: dict[FlowKey, Binding] = {}

    def _insert(self, table: dict[FlowKey, Binding], key: FlowKey, value: Binding) -> bool:
        if key not in table and len(table) >= self.max_entries:
            return False
        table[key] = value
        return True

    def process(self, frame: bytes) -> tuple[XdpAction, bytes]:
        """Translate one Ethernet frame; return the verdict and the resulting frame."""
        buf = bytearray(frame)
        return self._process(buf), bytes(buf)

    def _process(self, buf: bytearray) -> XdpAction:
        if len(buf) < ETH_HLEN:
            return XdpAction.DROP
        (eth_proto,) = struct.unpack_from("!H", buf, ETH_HLEN - 2)
        if eth_proto != ETH_P_IP:
            return XdpAction.DROP

        ip = ETH_HLEN
        if len(buf) < ip + IPV4_HLEN:
            return XdpAction.DROP
        protocol = buf[ip + 9]
        if protocol != IPPROTO_TCP:
            return XdpAction.DROP
        l4 = ip + IPV4_HLEN
        if len(buf) < l4 + TCP_HLEN:
            return XdpAction.DROP

        src, dst = struct.unpack_from("!II", buf, ip + _SRC_ADDR_OFF)
        sport, dport = struct.unpack_from("!HH", buf, l4)
        flow = FlowKey(src, dst, sport, dport, protocol)

        if INTERNAL_IP_START <= src <= INTERNAL_IP_END:
            binding = self.internal_external.get(flow)
            if binding is None:
                port = self.next_port
                binding = Binding(NAT_IP, port)
                if not self._insert(self.internal_external, flow, binding):
                    return XdpAction.DROP
                reply = FlowKey(dst, NAT_IP, dport, port, protocol)
                if not self._insert(self.external_nat, reply, Binding(src, sport)):
                    return XdpAction.DROP
                self.next_port = (port + 1) & _MASK16
            struct.pack_into("!I", buf, ip + _SRC_ADDR_OFF, binding.addr)
            struct.pack_into("!H", buf, l4, binding.port)
        elif dst == NAT_IP:
            binding = self.external_nat.get(flow)
            if binding is None:
                return XdpAction.DROP
            struct.pack_into("!I", buf, ip + _DST_ADDR_OFF, binding.addr)
            struct.pack_into("!H", buf, l4 + 2, binding.port)
        else:
            return XdpAction.DROP

        return XdpAction.TX