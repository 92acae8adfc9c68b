# (c) Copyright IBM Corp. 2025

import os
import socket
import struct
from pathlib import Path
from typing import Dict, Iterable, Optional

# Socket tables as printed by the kernel
TCP_HEADER = (
    "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt"
    "   uid  timeout inode"
)
UDP_HEADER = (
    "   sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt"
    "   uid  timeout inode ref pointer drops"
)
TCP6_HEADER = (
    "  sl  local_address                         remote_address                        st"
    " tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode"
)

# 127.0.0.1:8080 listening
LISTEN_ROW = (
    "   0: 0100007F:1F90 00000000:0000 0A 00000000:00000000 00:00000000 00000000"
    "     0        0 12345 1 0000000000000000 100 0 0 10 0"
)
# 10.0.0.5:43210 -> 10.0.0.9:5432
ESTABLISHED_ROW = (
    "   1: 0500000A:A8CA 0900000A:1538 01 00000000:00000000 02:000A7B2D 00000000"
    "  1000        0 23456 2 0000000000000000 20 4 30 10 -1"
)
# 0.0.0.0:68, UDP sockets report state 07
UDP_ROW = (
    "  123: 00000000:0044 00000000:0000 07 00000000:00000000 00:00000000 00000000"
    "     0        0 34567 2 0000000000000000 0"
)
# [::ffff:127.0.0.1]:8080 listening
TCP6_MAPPED_ROW = (
    "   0: 0000000000000000FFFF00000100007F:1F90 00000000000000000000000000000000:0000 0A"
    " 00000000:00000000 00:00000000 00000000     0        0 45678 1 0000000000000000 100 0 0 10 0"
)
# [::1]:443 listening
TCP6_LOOPBACK_ROW = (
    "   1: 00000000000000000000000001000000:01BB 00000000000000000000000000000000:0000 0A"
    " 00000000:00000000 00:00000000 00000000     0        0 56789 1 0000000000000000 100 0 0 10 0"
)


def table(header: str, *rows: str) -> str:
    return "\n".join((header,) + rows) + "\n"


def encode_ipv4(address: str) -> str:
    """The kernel's rendering of an IPv4 address: a little-endian word in hex"""
    (word,) = struct.unpack("<I", socket.inet_aton(address))
    return "%08X" % word


# Fake proc mounts


def make_process(
    proc_root: Path,
    pid: int,
    pid_ns: Optional[int],
    net_ns: Optional[int],
    sockets: Iterable[int] = (),
    tables: Optional[Dict[str, str]] = None,
) -> Path:
    """
    Create <proc_root>/<pid> with ns/pid, ns/net and fd/ links, and net/ tables.
    A namespace ID of None leaves that link out.
    """
    process_dir = proc_root / str(pid)
    (process_dir / "ns").mkdir(parents=True)
    if pid_ns is not None:
        os.symlink(f"pid:[{pid_ns}]", process_dir / "ns" / "pid")
    if net_ns is not None:
        os.symlink(f"net:[{net_ns}]", process_dir / "ns" / "net")

    fd_dir = process_dir / "fd"
    fd_dir.mkdir()
    os.symlink("/dev/null", fd_dir / "0")
    os.symlink("pipe:[999]", fd_dir / "1")
    for fd, inode in enumerate(sockets, start=3):
        os.symlink(f"socket:[{inode}]", fd_dir / str(fd))

    if tables:
        net_dir = process_dir / "net"
        net_dir.mkdir()
        for name, text in tables.items():
            (net_dir / name).write_text(text)
    return process_dir
