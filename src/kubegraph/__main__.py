# (c) Copyright IBM Corp. 2025

"""
This module provides "python -m kubegraph" functionality: run one discovery pass and
print the result as JSON.

  python -m kubegraph [--namespace NS] [--kubeconfig PATH] [--context NAME] [--in-cluster]
  python -m kubegraph --local [--proc-root PATH]
"""
import argparse
import json
import sys
import threading
from typing import List, Optional

from kubegraph.aggregator import discover_all, discover_host_processes
from kubegraph.errors import EnumerationError, WorkloadListingError
from kubegraph.log import logger, update_log_level
from kubegraph.options import Options
from kubegraph.remote import KubernetesExecutor, list_workloads, load_core_api
from kubegraph.report import SnapshotReporter, host_document, to_document
from kubegraph.version import VERSION


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubegraph",
        description="Discover the network connections of the pods of a cluster.",
    )
    parser.add_argument("--version", action="version", version=f"kubegraph {VERSION}")
    parser.add_argument("--namespace", help="only discover pods of this namespace")
    parser.add_argument("--kubeconfig", help="path to the kubeconfig file")
    parser.add_argument("--context", dest="kube_context", help="kubeconfig context to use")
    parser.add_argument("--in-cluster", action="store_true", default=None,
                        help="use the service account of the pod we run in")
    parser.add_argument("--max-workers", type=int, help="workloads discovered in parallel")
    parser.add_argument("--pass-timeout", type=float, help="seconds allowed for the whole pass")
    parser.add_argument("--local", action="store_true",
                        help="inventory the processes of the local proc mount instead")
    parser.add_argument("--proc-root", help="proc mount used with --local")
    parser.add_argument("--pretty", action="store_true", help="indent the JSON output")
    return parser


def options_from_args(args: argparse.Namespace) -> Options:
    overrides = {}
    for name in ("namespace", "kubeconfig", "kube_context", "in_cluster",
                 "max_workers", "pass_timeout", "proc_root"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    return Options(**overrides)


def run_local(options: Options) -> dict:
    return host_document(discover_host_processes(options))


def run_cluster(options: Options) -> dict:
    core_v1 = load_core_api(options)
    workloads = list_workloads(core_v1, options.namespace)
    logger.info("Discovering connections of %d workloads", len(workloads))

    executor = KubernetesExecutor(core_v1, timeout=options.exec_timeout)
    results = discover_all(workloads, executor, options, threading.Event())

    reporter = SnapshotReporter(options)
    if reporter.can_send():
        reporter.report(results)
    return to_document(results)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    options = options_from_args(args)
    update_log_level(options)

    try:
        document = run_local(options) if args.local else run_cluster(options)
    except (EnumerationError, WorkloadListingError) as exc:
        logger.error("%s", exc)
        return 1

    json.dump(document, sys.stdout, indent=2 if args.pretty else None)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
