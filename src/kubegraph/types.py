# (c) Copyright IBM Corp. 2025

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

ESTABLISHED = "established"
LISTENING = "listening"


@dataclass(frozen=True)
class ConnectionDescriptor:
    protocol: str  # "tcp" or "udp"
    ip_version: int  # 4 or 6
    src_port: int
    src_ip: str
    dst_port: int
    dst_ip: str
    status: str  # established, listening or "other (code:N)"
    inode: int = 0  # socket inode column of the table row, 0 if unknown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "ipVersion": self.ip_version,
            "srcPort": self.src_port,
            "srcIP": self.src_ip,
            "dstPort": self.dst_port,
            "dstIP": self.dst_ip,
            "status": self.status,
        }


@dataclass(frozen=True)
class ProcessRecord:
    pid: int
    pid_namespace_id: int
    net_namespace_id: int
    connections: Tuple[ConnectionDescriptor, ...] = ()


# net namespace ID -> processes sharing that network namespace
NamespaceGroup = Dict[int, List[ProcessRecord]]


@dataclass(frozen=True)
class ContainerTarget:
    namespace: str
    workload_name: str
    container_name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.workload_name}:{self.container_name}"


@dataclass(frozen=True)
class Workload:
    namespace: str
    name: str
    containers: Tuple[str, ...]
    node_name: Optional[str] = None

    def targets(self) -> List[ContainerTarget]:
        return [ContainerTarget(self.namespace, self.name, c) for c in self.containers]


@dataclass(frozen=True)
class WorkloadConnections:
    namespace: str
    workload_name: str
    connections: Tuple[ConnectionDescriptor, ...] = ()


@dataclass(frozen=True)
class ExecResult:
    stdout: str
    stderr: str = ""


@dataclass(frozen=True)
class SocketTableVariant:
    file_name: str  # entry under /proc/net
    protocol: str
    ip_version: int


SOCKET_TABLE_VARIANTS = (
    SocketTableVariant("tcp", "tcp", 4),
    SocketTableVariant("tcp6", "tcp", 6),
    SocketTableVariant("udp", "udp", 4),
    SocketTableVariant("udp6", "udp", 6),
)
