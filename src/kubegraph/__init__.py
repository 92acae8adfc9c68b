# coding=utf-8
# (c) Copyright IBM Corp. 2025
"""
kubegraph

Discovers the TCP and UDP connections of the workloads (pods) of a cluster, or of
the processes of a host, and attributes each connection to its owner.
"""

from kubegraph.aggregator import (
    discover_all,
    discover_host_processes,
    discover_workload_connections,
)
from kubegraph.options import Options
from kubegraph.procfs.inventory import enumerate_processes
from kubegraph.procfs.namespace import resolve_namespace_id
from kubegraph.socket_table import parse_socket_table
from kubegraph.version import VERSION

__license__ = "MIT"
__version__ = VERSION

__all__ = [
    "Options",
    "discover_all",
    "discover_host_processes",
    "discover_workload_connections",
    "enumerate_processes",
    "parse_socket_table",
    "resolve_namespace_id",
]
