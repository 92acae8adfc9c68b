# (c) Copyright IBM Corp. 2025

"""
Cluster collaborators: running a command inside a container and listing the workloads
(pods) whose connections are discovered.
"""
import threading
import time
from typing import Callable, List, Optional, Protocol, Sequence

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream

from kubegraph.errors import RemoteExecError, WorkloadListingError
from kubegraph.log import logger
from kubegraph.options import Options
from kubegraph.types import ContainerTarget, ExecResult, Workload


class RemoteExecutor(Protocol):
    """Runs a command inside a container and returns what it wrote"""

    def exec(
        self,
        target: ContainerTarget,
        command: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecResult:
        ...


class KubernetesExecutor(object):
    """
    RemoteExecutor backed by the pod exec API of the Kubernetes client.

    Every call opens its own websocket session and always closes it, whether the
    command completed, failed, timed out or was cancelled.
    """

    # How long a single wait for output may block before cancellation is checked again
    POLL_INTERVAL = 0.5

    def __init__(
        self,
        core_v1: client.CoreV1Api,
        timeout: float = Options.DEFAULT_EXEC_TIMEOUT,
        api_factory: Optional[Callable[[], client.CoreV1Api]] = None,
    ) -> None:
        """
        @param core_v1: API whose configuration the exec sessions use
        @param timeout: seconds allowed for one command
        @param api_factory: builds the API of one worker thread; by default a CoreV1Api
          with its own ApiClient sharing the configuration of <core_v1>
        """
        self.core_v1 = core_v1
        self.timeout = timeout
        self.api_factory = api_factory if api_factory is not None else self._private_api
        self._local = threading.local()

    def _private_api(self) -> client.CoreV1Api:
        configuration = self.core_v1.api_client.configuration
        return client.CoreV1Api(api_client=client.ApiClient(configuration=configuration))

    def thread_api(self) -> client.CoreV1Api:
        """
        The API used by the calling thread.  stream() swaps the transport of the
        ApiClient it is handed while it connects, so no two threads may share one.
        """
        api = getattr(self._local, "core_v1", None)
        if api is None:
            api = self._local.core_v1 = self.api_factory()
        return api

    def exec(
        self,
        target: ContainerTarget,
        command: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecResult:
        command = list(command)
        try:
            session = stream(
                self.thread_api().connect_get_namespaced_pod_exec,
                target.workload_name,
                target.namespace,
                container=target.container_name,
                command=command,
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
                _request_timeout=self.timeout,
            )
        except ApiException as exc:
            raise RemoteExecError(target, command, f"{exc.status} {exc.reason}") from exc
        except Exception as exc:
            raise RemoteExecError(target, command, f"connection error ({type(exc).__name__})") from exc

        try:
            return self._collect(session, target, command, cancel_event)
        finally:
            session.close()

    def _collect(self, session, target, command, cancel_event) -> ExecResult:
        stdout = []
        stderr = []
        deadline = time.monotonic() + self.timeout

        try:
            while session.is_open():
                if cancel_event is not None and cancel_event.is_set():
                    raise RemoteExecError(target, command, "cancelled")

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise RemoteExecError(target, command, f"timed out after {self.timeout}s")

                session.update(timeout=min(remaining, self.POLL_INTERVAL))
                if session.peek_stdout():
                    stdout.append(session.read_stdout())
                if session.peek_stderr():
                    stderr.append(session.read_stderr())

            # Whatever arrived together with the close
            stdout.append(session.read_stdout())
            stderr.append(session.read_stderr())
        except RemoteExecError:
            raise
        except Exception as exc:
            raise RemoteExecError(target, command, f"stream error ({type(exc).__name__})") from exc

        err_text = "".join(stderr)
        returncode = self._returncode(session, target)
        if returncode:
            raise RemoteExecError(target, command, f"exit code {returncode}: {err_text.strip()}")

        return ExecResult(stdout="".join(stdout), stderr=err_text)

    @staticmethod
    def _returncode(session, target) -> Optional[int]:
        # The status arrives on the error channel; some API servers omit it
        try:
            return session.returncode
        except Exception:
            logger.debug("No exit status received from %s", target, exc_info=True)
            return None


def load_core_api(options: Options) -> client.CoreV1Api:
    """
    Build a CoreV1Api from the in-cluster service account or from a kubeconfig file.

    @raise WorkloadListingError: no usable cluster configuration
    """
    try:
        if options.in_cluster:
            config.load_incluster_config()
        else:
            config.load_kube_config(config_file=options.kubeconfig, context=options.kube_context)
    except config.ConfigException as exc:
        raise WorkloadListingError(f"cannot load cluster configuration: {exc}") from exc
    return client.CoreV1Api()


def list_workloads(core_v1: client.CoreV1Api, namespace: Optional[str] = None) -> List[Workload]:
    """
    List the running pods of one namespace, or of the whole cluster, as workloads.

    @raise WorkloadListingError: the API server refused or failed the request
    """
    try:
        if namespace:
            pods = core_v1.list_namespaced_pod(namespace)
        else:
            pods = core_v1.list_pod_for_all_namespaces()
    except ApiException as exc:
        raise WorkloadListingError(f"cannot list pods: {exc.status} {exc.reason}") from exc

    workloads = []
    for pod in pods.items or []:
        phase = pod.status.phase if pod.status is not None else None
        if phase != "Running":
            logger.debug("Skipping pod %s/%s in phase %s", pod.metadata.namespace, pod.metadata.name, phase)
            continue
        containers = tuple(c.name for c in (pod.spec.containers or []))
        workloads.append(
            Workload(
                namespace=pod.metadata.namespace,
                name=pod.metadata.name,
                containers=containers,
                node_name=pod.spec.node_name,
            )
        )
    return workloads
