# (c) Copyright IBM Corp. 2025

"""
Exceptions raised by the discovery engine.

Only EnumerationError and WorkloadListingError escape a discovery pass.  The others
are absorbed by the component that produced them and turned into "no data" for the
process or container concerned.
"""


class KubegraphError(Exception):
    """Base class for all kubegraph errors"""


class NamespaceUnavailable(KubegraphError):
    """The namespace link of a process could not be read or understood"""

    def __init__(self, pid: int, kind: str, reason: str = "") -> None:
        self.pid = pid
        self.kind = kind
        self.reason = reason
        super(NamespaceUnavailable, self).__init__(
            f"namespace '{kind}' of pid {pid} is unavailable: {reason}"
        )


class EnumerationError(KubegraphError):
    """The process root itself could not be listed"""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        super(EnumerationError, self).__init__(f"cannot enumerate {path}: {reason}")


class RemoteExecError(KubegraphError):
    """A command run inside a container failed, timed out or was cancelled"""

    def __init__(self, target, command, reason: str = "") -> None:
        self.target = target
        self.command = command
        self.reason = reason
        super(RemoteExecError, self).__init__(
            f"exec of {' '.join(command)} in {target} failed: {reason}"
        )


class WorkloadListingError(KubegraphError):
    """The list of workloads could not be obtained from the cluster"""
