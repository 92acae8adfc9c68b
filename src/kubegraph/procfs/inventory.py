# (c) Copyright IBM Corp. 2025

"""
Inventory of the processes visible in a proc mount, grouped by network namespace.

Processes that share a network namespace see the same sockets, so a single member of
each group is enough to read the namespace's socket tables.
"""
import os
import string
from dataclasses import replace
from typing import Iterator, List, Optional, Set

from kubegraph.errors import EnumerationError, NamespaceUnavailable
from kubegraph.log import logger
from kubegraph.procfs.namespace import resolve_namespace_id
from kubegraph.socket_table import parse_socket_table
from kubegraph.types import SOCKET_TABLE_VARIANTS, ConnectionDescriptor, NamespaceGroup, ProcessRecord
from kubegraph.util import batched

SOCKET_LINK_PREFIX = "socket:["


def _is_decimal(name: str) -> bool:
    return bool(name) and not name.strip(string.digits)


def _scan(path: str, batch_size: int) -> Iterator[os.DirEntry]:
    """
    Lazily walk the entries of <path>, pulling at most <batch_size> of them from the
    directory stream at a time.  OSError from opening or reading the directory is
    left to the caller.
    """
    with os.scandir(path) as entries:
        for batch in batched(entries, batch_size):
            yield from batch


def _process_record(entry: os.DirEntry, proc_root: str) -> Optional[ProcessRecord]:
    if not _is_decimal(entry.name):
        return None

    try:
        if not entry.is_dir():
            return None
        pid = int(entry.name)
    except (OSError, ValueError):
        return None

    # From here on a failure most likely means the process is gone
    try:
        pid_ns = resolve_namespace_id(pid, "pid", proc_root)
        net_ns = resolve_namespace_id(pid, "net", proc_root)
    except NamespaceUnavailable as exc:
        logger.debug("Skipping process: %s", exc)
        return None

    return ProcessRecord(pid=pid, pid_namespace_id=pid_ns, net_namespace_id=net_ns)


def enumerate_processes(proc_root: str = "/proc", batch_size: int = 64) -> NamespaceGroup:
    """
    List every process of <proc_root> and group them by network namespace ID.

    @param proc_root: mount point of the proc filesystem to inspect
    @param batch_size: maximum number of directory entries read at once
    @return: net namespace ID -> process records, in scan order
    @raise EnumerationError: <proc_root> cannot be opened or listed
    """
    group = {}
    try:
        for entry in _scan(proc_root, batch_size):
            record = _process_record(entry, proc_root)
            if record is not None:
                group.setdefault(record.net_namespace_id, []).append(record)
    except OSError as exc:
        raise EnumerationError(proc_root, exc.strerror or str(exc)) from exc

    logger.debug(
        "enumerate_processes: %d processes in %d network namespaces",
        sum(len(records) for records in group.values()),
        len(group),
    )
    return group


def socket_inodes(pid: int, proc_root: str = "/proc", batch_size: int = 64) -> Set[int]:
    """
    Collect the inodes of the sockets held open by <pid> from its fd/ directory.
    Entries that vanish or cannot be read are skipped.
    """
    inodes = set()
    fd_path = os.path.join(proc_root, str(pid), "fd")
    try:
        for entry in _scan(fd_path, batch_size):
            try:
                link = os.readlink(entry.path)
            except OSError:
                continue
            if link.startswith(SOCKET_LINK_PREFIX) and link.endswith("]"):
                inode = link[len(SOCKET_LINK_PREFIX):-1]
                if _is_decimal(inode):
                    inodes.add(int(inode))
    except OSError:
        logger.debug("socket_inodes: cannot list %s", fd_path, exc_info=True)
    return inodes


def read_local_socket_tables(pid: int, proc_root: str = "/proc") -> Optional[List[ConnectionDescriptor]]:
    """
    Parse the socket tables of the network namespace <pid> lives in, as seen through
    <proc_root>/<pid>/net/.  Returns None if none of the tables could be read.
    """
    descriptors = []
    readable = False
    for variant in SOCKET_TABLE_VARIANTS:
        path = os.path.join(proc_root, str(pid), "net", variant.file_name)
        try:
            with open(path, "r") as table:
                text = table.read()
        except OSError:
            logger.debug("read_local_socket_tables: cannot read %s", path)
            continue
        readable = True
        descriptors.extend(parse_socket_table(text, variant.protocol, variant.ip_version))
    return descriptors if readable else None


def attach_local_connections(group: NamespaceGroup, proc_root: str = "/proc") -> NamespaceGroup:
    """
    Correlate each process with the sockets it owns.

    The tables of a namespace are read once, through the first member whose tables
    are readable.  Every record is rebuilt with the descriptors whose inode appears
    among the process's own socket file descriptors.
    """
    attached = {}
    for net_ns, records in group.items():
        descriptors = None
        for record in records:
            descriptors = read_local_socket_tables(record.pid, proc_root)
            if descriptors is not None:
                break

        if descriptors is None:
            logger.debug("attach_local_connections: no readable tables for net namespace %d", net_ns)
            attached[net_ns] = list(records)
            continue

        rebuilt = []
        for record in records:
            owned = socket_inodes(record.pid, proc_root)
            connections = tuple(d for d in descriptors if d.inode and d.inode in owned)
            rebuilt.append(replace(record, connections=connections))
        attached[net_ns] = rebuilt
    return attached
