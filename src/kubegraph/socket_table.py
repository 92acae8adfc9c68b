# (c) Copyright IBM Corp. 2025

"""
Parser for the kernel socket tables exposed as /proc/net/{tcp,tcp6,udp,udp6}.

A table has one header line followed by one row per socket:

  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
   0: 0100007F:1F90 00000000:0000 0A 00000000:00000000 00:00000000 00000000     0        0 12345 ...

Addresses are hexadecimal, byte-order-reversed words.  Ports are plain hexadecimal.
A field that does not parse decodes as zero and the row is kept, so the output stays
aligned with the rows of the table.  Rows with fewer than five fields are dropped.
"""
import re
import socket
import struct
from typing import List, Optional, Tuple

from kubegraph.types import ESTABLISHED, LISTENING, ConnectionDescriptor

MIN_FIELDS = 5

# Positions of the fields of a row, counting the "sl" column as 0
LOCAL_ADDRESS = 1
REMOTE_ADDRESS = 2
STATE = 3
INODE = 9

IPV4_HEX_CHARS = 8

STATE_ESTABLISHED = 0x01
STATE_LISTEN = 0x0A

# Field widths vary, so rows are split on any run of spaces and tabs
_field_separator = re.compile(r"[ \t]+")

# Bare digits only: no sign, "0x" prefix or underscores
_hex_digits = re.compile(r"[0-9A-Fa-f]+")
_decimal_digits = re.compile(r"[0-9]+")


def _hex_to_int(value: str, limit: int) -> int:
    if not _hex_digits.fullmatch(value):
        return 0
    number = int(value, 16)
    if number > limit:
        return 0
    return number


def decode_ipv4(hex_address: str) -> str:
    """
    Convert a little-endian hex word to dotted decimal ("0100007F" -> "127.0.0.1").
    Anything that is not a 32-bit hex value decodes as "0.0.0.0".
    """
    number = _hex_to_int(hex_address, 0xFFFFFFFF)
    return socket.inet_ntoa(struct.pack("<I", number))


def decode_port(hex_port: str) -> int:
    return _hex_to_int(hex_port, 0xFFFF)


def truncate_ipv6_pair(src_hex: str, dst_hex: str) -> Tuple[str, str]:
    """
    Approximate decoding of tcp6/udp6 addresses: when both addresses are wider than
    an IPv4 word, keep only their last 8 hex characters.  For an IPv4-mapped address
    (::ffff:a.b.c.d) that is the embedded IPv4 address; for any other IPv6 address it
    is only the low-order 32 bits.
    """
    # TODO: decode the full 128-bit address (four little-endian words) and render it
    # with ipaddress.IPv6Address once consumers can handle IPv6 text.
    if len(src_hex) > IPV4_HEX_CHARS and len(dst_hex) > IPV4_HEX_CHARS:
        return src_hex[-IPV4_HEX_CHARS:], dst_hex[-IPV4_HEX_CHARS:]
    return src_hex, dst_hex


def describe_state(code: int) -> str:
    if code == STATE_ESTABLISHED:
        return ESTABLISHED
    if code == STATE_LISTEN:
        return LISTENING
    return f"other (code:{code})"


def _split_endpoint(field: str) -> Tuple[str, str]:
    address, _, port = field.partition(":")
    return address, port


def parse_socket_table_line(
    line: str, protocol: str, ip_version: int
) -> Optional[ConnectionDescriptor]:
    """
    Parse one data row.  Returns None when the row has too few fields.
    """
    fields = _field_separator.split(line.strip())
    if len(fields) < MIN_FIELDS:
        return None

    src_hex, src_port = _split_endpoint(fields[LOCAL_ADDRESS])
    dst_hex, dst_port = _split_endpoint(fields[REMOTE_ADDRESS])
    src_hex, dst_hex = truncate_ipv6_pair(src_hex, dst_hex)

    inode = 0
    if len(fields) > INODE and _decimal_digits.fullmatch(fields[INODE]):
        inode = int(fields[INODE], 10)

    return ConnectionDescriptor(
        protocol=protocol,
        ip_version=ip_version,
        src_port=decode_port(src_port),
        src_ip=decode_ipv4(src_hex),
        dst_port=decode_port(dst_port),
        dst_ip=decode_ipv4(dst_hex),
        status=describe_state(_hex_to_int(fields[STATE], 0xFFFFFFFF)),
        inode=inode,
    )


def parse_socket_table(text: str, protocol: str, ip_version: int) -> List[ConnectionDescriptor]:
    """
    Parse the full content of a socket table file, header line included.

    @param text: raw table text
    @param protocol: "tcp" or "udp", copied into every descriptor
    @param ip_version: 4 or 6, copied into every descriptor
    @return: one descriptor per well-formed row, in table order
    """
    descriptors = []
    for line in text.splitlines()[1:]:
        descriptor = parse_socket_table_line(line, protocol, ip_version)
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors
