# (c) Copyright IBM Corp. 2025

"""
Discovery of the connections of workloads (pods).

The containers of a workload share one network namespace, so the socket tables are
read from its containers in order and the first container that reports any socket
answers for the whole workload.  Workloads are independent and are discovered in
parallel on a bounded thread pool.
"""
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Iterable, List, Optional

from kubegraph.errors import RemoteExecError
from kubegraph.log import logger
from kubegraph.options import Options
from kubegraph.procfs.inventory import attach_local_connections, enumerate_processes
from kubegraph.remote import RemoteExecutor
from kubegraph.socket_table import parse_socket_table
from kubegraph.types import (
    SOCKET_TABLE_VARIANTS,
    ConnectionDescriptor,
    ContainerTarget,
    NamespaceGroup,
    SocketTableVariant,
    Workload,
    WorkloadConnections,
)
from kubegraph.util import first_satisfying

THREAD_NAME = "kubegraph-discovery"


def socket_table_command(variant: SocketTableVariant) -> List[str]:
    return ["cat", f"/proc/net/{variant.file_name}"]


def fetch_container_connections(
    target: ContainerTarget,
    executor: RemoteExecutor,
    cancel_event: Optional[threading.Event] = None,
) -> List[ConnectionDescriptor]:
    """
    Read and parse the four socket tables from inside one container.

    A table that cannot be read contributes nothing; the others are still used.
    Once <cancel_event> is set no further table is requested.
    @return: descriptors in tcp, tcp6, udp, udp6 order
    """
    connections = []
    failures = 0
    for variant in SOCKET_TABLE_VARIANTS:
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("fetch_container_connections: %s cancelled", target)
            return connections
        command = socket_table_command(variant)
        try:
            result = executor.exec(target, command, cancel_event=cancel_event)
        except RemoteExecError as exc:
            failures += 1
            logger.debug("fetch_container_connections: %s", exc)
            continue
        connections.extend(parse_socket_table(result.stdout, variant.protocol, variant.ip_version))

    if failures == len(SOCKET_TABLE_VARIANTS):
        logger.warning("No socket table could be read from %s", target)
    return connections


def discover_workload_connections(
    workload: Workload,
    executor: RemoteExecutor,
    cancel_event: Optional[threading.Event] = None,
) -> WorkloadConnections:
    """
    Discover the connections of one workload.

    Containers are visited in order and the visit stops at the first container that
    reports at least one connection.  A workload whose containers all fail or report
    nothing gets an empty connection sequence.
    """
    should_stop = cancel_event.is_set if cancel_event is not None else None

    _, connections = first_satisfying(
        workload.targets(),
        lambda target: fetch_container_connections(target, executor, cancel_event),
        lambda found: len(found) > 0,
        should_stop=should_stop,
    )

    return WorkloadConnections(
        namespace=workload.namespace,
        workload_name=workload.name,
        connections=tuple(connections or ()),
    )


def _empty(workload: Workload) -> WorkloadConnections:
    return WorkloadConnections(namespace=workload.namespace, workload_name=workload.name)


def discover_all(
    workloads: Iterable[Workload],
    executor: RemoteExecutor,
    options: Optional[Options] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[WorkloadConnections]:
    """
    Discover the connections of many workloads in parallel.

    At most options.max_workers workloads (and therefore remote commands) are in
    flight at once.  When options.pass_timeout expires, or <cancel_event> is set,
    in-flight commands are abandoned and unfinished workloads are reported with no
    connections.

    @return: one entry per workload, in input order
    """
    if options is None:
        options = Options()
    if cancel_event is None:
        cancel_event = threading.Event()

    workloads = list(workloads)
    results = [None] * len(workloads)

    pool = ThreadPoolExecutor(max_workers=options.max_workers, thread_name_prefix=THREAD_NAME)
    abandoned = False
    try:
        futures = {
            pool.submit(discover_workload_connections, workload, executor, cancel_event): index
            for index, workload in enumerate(workloads)
        }
        try:
            done, not_done = wait(futures, timeout=options.pass_timeout)
        except BaseException:
            # Interrupted while waiting: let the workers wind down on their own
            cancel_event.set()
            abandoned = True
            raise

        if not_done:
            logger.warning(
                "Discovery pass timed out after %ss: %d of %d workloads unfinished",
                options.pass_timeout,
                len(not_done),
                len(workloads),
            )
            cancel_event.set()
            abandoned = True
            for future in not_done:
                future.cancel()

        for future in done:
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception:
                logger.warning(
                    "Discovery of %s/%s failed",
                    workloads[index].namespace,
                    workloads[index].name,
                    exc_info=True,
                )
    finally:
        # Workers still busy past the deadline are not waited for; they stop at
        # their next cancellation check and their results are discarded
        pool.shutdown(wait=not abandoned)

    return [result if result is not None else _empty(workloads[i]) for i, result in enumerate(results)]


def discover_host_processes(options: Optional[Options] = None) -> NamespaceGroup:
    """
    Inventory the processes of the local proc mount, grouped by network namespace,
    each carrying the connections it owns.

    @raise EnumerationError: the proc mount cannot be listed
    """
    if options is None:
        options = Options()
    group = enumerate_processes(options.proc_root, options.batch_size)
    return attach_local_connections(group, options.proc_root)
