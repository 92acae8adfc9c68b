# (c) Copyright IBM Corp. 2025

"""
Rendering of discovery results as JSON documents and reporting of snapshots to an
HTTP endpoint.
"""
from typing import Any, Dict, Iterable, Optional

import requests
from requests import Response

from kubegraph.log import logger
from kubegraph.options import Options
from kubegraph.types import NamespaceGroup, WorkloadConnections
from kubegraph.util import DictionaryOfStan, to_json
from kubegraph.version import VERSION


def to_document(results: Iterable[WorkloadConnections]) -> Dict[str, Any]:
    """
    Build {namespace: {workload: {"connections": [...]}}} from discovery results.
    """
    document = DictionaryOfStan()
    for result in results:
        document[result.namespace][result.workload_name]["connections"] = [
            c.to_dict() for c in result.connections
        ]
    return document


def host_document(group: NamespaceGroup) -> Dict[str, Any]:
    """
    Build {net namespace ID: [{"pid", "pidNamespace", "connections"}]} from a host
    process inventory.
    """
    document = {}
    for net_ns in sorted(group):
        document[str(net_ns)] = [
            {
                "pid": record.pid,
                "pidNamespace": record.pid_namespace_id,
                "connections": [c.to_dict() for c in record.connections],
            }
            for record in group[net_ns]
        ]
    return document


class SnapshotReporter(object):
    """Posts discovery snapshots to options.endpoint_url"""

    SNAPSHOT_PATH = "/connections"

    def __init__(self, options: Optional[Options] = None) -> None:
        self.options = options if options is not None else Options()
        self.client = requests.Session()

    def can_send(self) -> bool:
        return self.options.endpoint_url is not None

    def snapshot_url(self) -> str:
        return f"{self.options.endpoint_url}{self.SNAPSHOT_PATH}"

    def report(self, results: Iterable[WorkloadConnections]) -> Optional[Response]:
        """
        Send one snapshot.  Transport problems are logged, never raised.
        """
        if not self.can_send():
            logger.debug("SnapshotReporter.report: no endpoint configured")
            return None

        response = None
        try:
            response = self.client.post(
                self.snapshot_url(),
                data=to_json(to_document(results)),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": f"kubegraph/{VERSION}",
                },
                timeout=self.options.timeout,
                verify=self.options.ssl_verify,
                proxies=self.options.endpoint_proxy,
            )

            if not 200 <= response.status_code <= 204:
                logger.info(
                    "report: response status code (%d) is NOT 20x", response.status_code
                )
        except requests.exceptions.RequestException as exc:
            logger.debug(f"report: connection error ({type(exc)})", exc_info=True)
        return response
