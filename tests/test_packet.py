import struct

import pytest

from xdplab.packet import (
    ETH_P_8021AD,
    ETH_P_8021Q,
    ETH_P_IP,
    ETH_P_IPV6,
    IPPROTO_TCP,
    IPPROTO_UDP,
    FiveTuple,
    XdpAction,
    parse_five_tuple,
)

MACS = bytes(range(0x10, 0x16)) + bytes(range(0x20, 0x26))


def _ipv4(proto, src, dst):
    return struct.pack("!BBHHHBBHII", 0x45, 0, 40, 0, 0, 64, proto, 0, src, dst)


def _tcp(sport, dport):
    return struct.pack("!HHIIBBHHH", sport, dport, 0, 0, 0x50, 0x02, 1024, 0, 0)


def _udp(sport, dport):
    return struct.pack("!HHHH", sport, dport, 8, 0)


def _frame(l3, ethertype=ETH_P_IP, vlans=()):
    head = MACS
    for tag_type in vlans:
        head += struct.pack("!H", tag_type) + struct.pack("!H", 5)
    return head + struct.pack("!H", ethertype) + l3


def test_pack_is_network_order_wire_layout():
    key = FiveTuple(0x0A000001, 0x0A000002, 1234, 80, 6)
    assert key.pack() == bytes.fromhex("0a000001" "0a000002" "04d2" "0050" "06")
    assert len(key.pack()) == FiveTuple.SIZE


@pytest.mark.parametrize("code, name", [(1, "DROP"), (2, "PASS"), (3, "TX")])
def test_xdp_action_lookup_by_value(code, name):
    assert XdpAction(code) is XdpAction[name]


def test_parse_tcp():
    frame = _frame(_ipv4(IPPROTO_TCP, 0xC0A80001, 0x0A000002) + _tcp(4000, 443))
    assert parse_five_tuple(frame) == FiveTuple(0xC0A80001, 0x0A000002, 4000, 443, IPPROTO_TCP)


def test_parse_udp():
    frame = _frame(_ipv4(IPPROTO_UDP, 0x01020304, 0x05060708) + _udp(53, 5353))
    assert parse_five_tuple(frame) == FiveTuple(0x01020304, 0x05060708, 53, 5353, IPPROTO_UDP)


@pytest.mark.parametrize(
    "vlans", [(ETH_P_8021Q,), (ETH_P_8021AD,), (ETH_P_8021AD, ETH_P_8021Q)]
)
def test_parse_skips_up_to_two_vlan_tags(vlans):
    frame = _frame(_ipv4(IPPROTO_UDP, 1, 2) + _udp(10, 20), vlans=vlans)
    assert parse_five_tuple(frame) == FiveTuple(1, 2, 10, 20, IPPROTO_UDP)


def test_parse_rejects_three_vlan_tags():
    frame = _frame(
        _ipv4(IPPROTO_UDP, 1, 2) + _udp(10, 20),
        vlans=(ETH_P_8021Q, ETH_P_8021Q, ETH_P_8021Q),
    )
    assert parse_five_tuple(frame) is None


def test_parse_rejects_non_ipv4():
    frame = _frame(bytes(40) + _tcp(1, 2), ethertype=ETH_P_IPV6)
    assert parse_five_tuple(frame) is None


def test_parse_rejects_other_l4_protocols():
    frame = _frame(_ipv4(1, 1, 2) + bytes(8))
    assert parse_five_tuple(frame) is None


def test_parse_rejects_truncated_tcp_header():
    frame = _frame(_ipv4(IPPROTO_TCP, 1, 2) + _tcp(1, 2)[:10])
    assert parse_five_tuple(frame) is None


def test_parse_rejects_truncated_ip_header():
    frame = _frame(_ipv4(IPPROTO_UDP, 1, 2)[:19])
    assert parse_five_tuple(frame) is None


def test_parse_rejects_short_ethernet():
    assert parse_five_tuple(MACS) is None


def test_parse_rejects_truncated_vlan_tag():
    frame = MACS + struct.pack("!H", ETH_P_8021Q) + b"\x00"
    assert parse_five_tuple(frame) is None


def test_parsed_tuple_pack_roundtrip():
    key = FiveTuple(0xDEADBEEF, 0x01010101, 65535, 1, IPPROTO_TCP)
    frame = _frame(_ipv4(key.proto, key.src_ip, key.dst_ip) + _tcp(key.src_port, key.dst_port))
    parsed = parse_five_tuple(frame)
    assert parsed is not None
    assert parsed.pack() == key.pack()