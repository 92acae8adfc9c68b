# (c) Copyright IBM Corp. 2025

""" Resolution of the kernel namespace a process belongs to """
import os
import string

from kubegraph.errors import NamespaceUnavailable

NAMESPACE_KINDS = ("pid", "net")


def namespace_link_path(pid: int, kind: str, proc_root: str = "/proc") -> str:
    return os.path.join(proc_root, str(pid), "ns", kind)


def resolve_namespace_id(pid: int, kind: str, proc_root: str = "/proc") -> int:
    """
    Read /proc/<pid>/ns/<kind> and return the namespace ID it points to.

    The link target reads like "net:[4026531993]".

    @param pid: process ID as seen in <proc_root>
    @param kind: "pid" or "net"
    @return: the namespace ID
    @raise NamespaceUnavailable: the link is gone, unreadable or malformed
    """
    if kind not in NAMESPACE_KINDS:
        raise ValueError(f"unsupported namespace kind: {kind}")

    try:
        target = os.readlink(namespace_link_path(pid, kind, proc_root))
    except OSError as exc:
        raise NamespaceUnavailable(pid, kind, exc.strerror or str(exc)) from exc

    prefix = f"{kind}:["
    if not target.startswith(prefix) or not target.endswith("]"):
        raise NamespaceUnavailable(pid, kind, f"unexpected link target {target!r}")

    digits = target[len(prefix):-1]
    if not digits or digits.strip(string.digits):
        raise NamespaceUnavailable(pid, kind, f"unexpected link target {target!r}")
    return int(digits, 10)
