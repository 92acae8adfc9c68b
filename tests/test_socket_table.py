# (c) Copyright IBM Corp. 2025

import pytest

from kubegraph.socket_table import (
    decode_ipv4,
    decode_port,
    describe_state,
    parse_socket_table,
    parse_socket_table_line,
    truncate_ipv6_pair,
)
from kubegraph.types import ConnectionDescriptor
from tests.helpers import (
    ESTABLISHED_ROW,
    LISTEN_ROW,
    TCP6_HEADER,
    TCP6_LOOPBACK_ROW,
    TCP6_MAPPED_ROW,
    TCP_HEADER,
    UDP_ROW,
    encode_ipv4,
    table,
)


class TestParseSocketTable:
    def test_header_only(self, empty_tcp_table: str) -> None:
        assert parse_socket_table(empty_tcp_table, "tcp", 4) == []

    def test_empty_text(self) -> None:
        assert parse_socket_table("", "tcp", 4) == []

    def test_literal_row(self) -> None:
        line = (
            "1: 0100007F:1F90 00000000:0000 0A 00000000:00000000 00:00000000 00000000"
            "   0    0 12345 1 0000000000000000 20 0 0 10 0"
        )
        descriptors = parse_socket_table(table(TCP_HEADER, line), "tcp", 4)

        assert len(descriptors) == 1
        descriptor = descriptors[0]
        assert descriptor.protocol == "tcp"
        assert descriptor.ip_version == 4
        assert descriptor.src_ip == "127.0.0.1"
        assert descriptor.src_port == 8080
        assert descriptor.dst_ip == "0.0.0.0"
        assert descriptor.dst_port == 0
        assert descriptor.status == "listening"
        assert descriptor.inode == 12345

    def test_rows_keep_table_order(self, tcp_table: str) -> None:
        descriptors = parse_socket_table(tcp_table, "tcp", 4)

        assert descriptors == [
            ConnectionDescriptor("tcp", 4, 8080, "127.0.0.1", 0, "0.0.0.0", "listening", 12345),
            ConnectionDescriptor("tcp", 4, 43210, "10.0.0.5", 5432, "10.0.0.9", "established", 23456),
        ]

    def test_protocol_tags_are_copied(self, udp_table: str) -> None:
        (descriptor,) = parse_socket_table(udp_table, "udp", 4)
        assert descriptor.protocol == "udp"
        assert descriptor.ip_version == 4
        assert descriptor.src_port == 68
        assert descriptor.status == "other (code:7)"

    def test_short_rows_are_skipped(self) -> None:
        text = table(TCP_HEADER, LISTEN_ROW, "   2: 0100007F:1F90 00000000:0000", ESTABLISHED_ROW)
        descriptors = parse_socket_table(text, "tcp", 4)

        assert [d.inode for d in descriptors] == [12345, 23456]

    def test_blank_and_tab_separated_rows(self) -> None:
        tabbed = "0:\t0100007F:0050\t\t0100007F:C350  01\t00000000:00000000 00:00000000"
        text = table(TCP_HEADER, "", tabbed, "   ")
        (descriptor,) = parse_socket_table(text, "tcp", 4)

        assert descriptor.src_port == 80
        assert descriptor.dst_port == 50000
        assert descriptor.dst_ip == "127.0.0.1"
        assert descriptor.status == "established"
        assert descriptor.inode == 0

    def test_unparsable_fields_decode_as_zero(self) -> None:
        line = "   0: ZZZZZZZZ:GGGG 0100007F 0X 00000000:00000000 00:00000000 00000000 0 0 inode"
        (descriptor,) = parse_socket_table(table(TCP_HEADER, line), "tcp", 4)

        assert descriptor.src_ip == "0.0.0.0"
        assert descriptor.src_port == 0
        assert descriptor.dst_ip == "127.0.0.1"
        assert descriptor.dst_port == 0
        assert descriptor.status == "other (code:0)"
        assert descriptor.inode == 0

    def test_windows_line_endings(self) -> None:
        text = "\r\n".join((TCP_HEADER, LISTEN_ROW)) + "\r\n"
        (descriptor,) = parse_socket_table(text, "tcp", 4)
        assert descriptor.src_port == 8080


class TestStates:
    @pytest.mark.parametrize(
        "code, expected",
        [
            ("01", "established"),
            ("0A", "listening"),
            ("0a", "listening"),
            ("05", "other (code:5)"),
            ("06", "other (code:6)"),
            ("0B", "other (code:11)"),
        ],
    )
    def test_state_codes(self, code: str, expected: str) -> None:
        line = f"   0: 0100007F:1F90 00000000:0000 {code} 00000000:00000000 00:00000000 00000000"
        (descriptor,) = parse_socket_table(table(TCP_HEADER, line), "tcp", 4)
        assert descriptor.status == expected

    def test_describe_state(self) -> None:
        assert describe_state(1) == "established"
        assert describe_state(10) == "listening"
        assert describe_state(0) == "other (code:0)"


class TestAddressDecoding:
    @pytest.mark.parametrize(
        "address, port",
        [("127.0.0.1", 8080), ("10.244.1.17", 443), ("192.168.0.254", 65535), ("0.0.0.0", 0)],
    )
    def test_ipv4_round_trip(self, address: str, port: int) -> None:
        line = (
            f"   0: {encode_ipv4(address)}:{port:04X} {encode_ipv4('8.8.4.4')}:0035 01"
            " 00000000:00000000 00:00000000 00000000"
        )
        descriptor = parse_socket_table_line(line, "tcp", 4)

        assert descriptor.src_ip == address
        assert descriptor.src_port == port
        assert descriptor.dst_ip == "8.8.4.4"
        assert descriptor.dst_port == 53

    def test_decode_ipv4(self) -> None:
        assert decode_ipv4("0100007F") == "127.0.0.1"
        assert decode_ipv4("") == "0.0.0.0"
        assert decode_ipv4("100000000") == "0.0.0.0"

    def test_decode_port(self) -> None:
        assert decode_port("1F90") == 8080
        assert decode_port("FFFF") == 65535
        assert decode_port("10000") == 0
        assert decode_port("") == 0


class TestIPv6Approximation:
    """
    tcp6/udp6 addresses are not fully decoded: only the last 32 bits of each address
    are kept.  These tests pin that approximation down.
    """

    def test_truncate_pair(self) -> None:
        src = "0000000000000000FFFF00000100007F"
        dst = "00000000000000000000000000000000"
        assert truncate_ipv6_pair(src, dst) == ("0100007F", "00000000")

    def test_truncate_needs_both_addresses_wide(self) -> None:
        assert truncate_ipv6_pair("0100007F", "00000000000000000000000000000000") == (
            "0100007F",
            "00000000000000000000000000000000",
        )

    def test_ipv4_mapped_address(self) -> None:
        (descriptor,) = parse_socket_table(table(TCP6_HEADER, TCP6_MAPPED_ROW), "tcp", 6)

        assert descriptor.ip_version == 6
        assert descriptor.src_ip == "127.0.0.1"
        assert descriptor.src_port == 8080
        assert descriptor.dst_ip == "0.0.0.0"
        assert descriptor.status == "listening"

    def test_native_ipv6_address_is_truncated(self) -> None:
        # ::1 keeps only its low-order word
        (descriptor,) = parse_socket_table(table(TCP6_HEADER, TCP6_LOOPBACK_ROW), "tcp", 6)

        assert descriptor.src_ip == "0.0.0.1"
        assert descriptor.src_port == 443
        assert descriptor.inode == 56789

    def test_mixed_width_decodes_wide_address_as_zero(self) -> None:
        line = (
            "   0: 0100007F:1F90 0000000000000000FFFF00000100007F:0050 01"
            " 00000000:00000000 00:00000000 00000000"
        )
        descriptor = parse_socket_table_line(line, "tcp", 6)
        assert descriptor.src_ip == "127.0.0.1"
        assert descriptor.dst_ip == "0.0.0.0"
        assert descriptor.dst_port == 80


def test_udp_row_fixture() -> None:
    descriptor = parse_socket_table_line(UDP_ROW, "udp", 4)
    assert descriptor.inode == 34567
    assert descriptor.to_dict() == {
        "protocol": "udp",
        "ipVersion": 4,
        "srcPort": 68,
        "srcIP": "0.0.0.0",
        "dstPort": 0,
        "dstIP": "0.0.0.0",
        "status": "other (code:7)",
    }


class TestStrictHex:
    @pytest.mark.parametrize("field", ["0x50", "0X50", "+1F90", "-1", "1_F90", " 50"])
    def test_prefixed_or_signed_ports_are_unparsable(self, field: str) -> None:
        assert decode_port(field) == 0

    @pytest.mark.parametrize("field", ["0x100007F", "+100007F", "0100_007F"])
    def test_prefixed_or_signed_addresses_are_unparsable(self, field: str) -> None:
        assert decode_ipv4(field) == "0.0.0.0"

    def test_row_with_prefixed_fields(self) -> None:
        line = (
            "   0: 0x00007F:0x50 0100007F:1_F90 +1 00000000:00000000 00:00000000 00000000"
            "     0        0 +12345 1 0000000000000000 100 0 0 10 0"
        )
        descriptor = parse_socket_table_line(line, "tcp", 4)

        assert descriptor.src_ip == "0.0.0.0"
        assert descriptor.src_port == 0
        assert descriptor.dst_ip == "127.0.0.1"
        assert descriptor.dst_port == 0
        assert descriptor.status == "other (code:0)"
        assert descriptor.inode == 0
