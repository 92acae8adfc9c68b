# (c) Copyright IBM Corp. 2025

"""
Options for a discovery pass.

Values are resolved in this order, later sources winning:
  defaults > configuration file (KUBEGRAPH_CONFIG_PATH, "kubegraph" section)
  > environment variables > keyword arguments
"""

import logging
import os
from typing import Any, Dict, Optional

from kubegraph.log import logger
from kubegraph.util import is_truthy
from kubegraph.util.config_reader import ConfigReader

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARN,
    "warning": logging.WARN,
    "error": logging.ERROR,
}


class Options(object):
    """Holds every setting of the discovery engine and its collaborators"""

    DEFAULT_PROC_ROOT = "/proc"
    DEFAULT_BATCH_SIZE = 64
    DEFAULT_MAX_WORKERS = 8
    DEFAULT_EXEC_TIMEOUT = 10.0
    DEFAULT_TIMEOUT = 0.8

    def __init__(self, **kwds: Dict[str, Any]) -> None:
        self.debug = False
        self.log_level = logging.WARN

        # Introspection
        self.proc_root = self.DEFAULT_PROC_ROOT
        self.batch_size = self.DEFAULT_BATCH_SIZE

        # Discovery pass
        self.max_workers = self.DEFAULT_MAX_WORKERS
        self.exec_timeout = self.DEFAULT_EXEC_TIMEOUT
        self.pass_timeout: Optional[float] = None
        self.namespace: Optional[str] = None

        # Cluster access
        self.kubeconfig: Optional[str] = None
        self.kube_context: Optional[str] = None
        self.in_cluster = False

        # Snapshot reporting
        self.endpoint_url: Optional[str] = None
        self.endpoint_proxy = {}
        self.ssl_verify = True
        self.timeout = self.DEFAULT_TIMEOUT

        self.set_from_file(os.environ.get("KUBEGRAPH_CONFIG_PATH", ""))
        self.set_from_env()

        self.__dict__.update(kwds)
        self.normalise()

    def set_from_file(self, file_path: str) -> None:
        """
        Apply the "kubegraph" section of a YAML configuration file.
        Keys are the attribute names of this class.
        """
        if not file_path:
            return

        section = ConfigReader(file_path).section("kubegraph")
        for key, value in section.items():
            if key == "log_level":
                self._set_log_level(str(value))
            elif hasattr(self, key):
                setattr(self, key, value)
            else:
                logger.warning(f"Options: unknown configuration key ignored: {key}")

    def set_from_env(self) -> None:
        if "KUBEGRAPH_PROC_ROOT" in os.environ:
            self.proc_root = os.environ["KUBEGRAPH_PROC_ROOT"]

        self.batch_size = self._int_from_env("KUBEGRAPH_BATCH_SIZE", self.batch_size)
        self.max_workers = self._int_from_env("KUBEGRAPH_MAX_WORKERS", self.max_workers)
        self.exec_timeout = self._seconds_from_env("KUBEGRAPH_EXEC_TIMEOUT", self.exec_timeout)
        self.pass_timeout = self._seconds_from_env("KUBEGRAPH_PASS_TIMEOUT", self.pass_timeout)
        self.timeout = self._seconds_from_env("KUBEGRAPH_TIMEOUT", self.timeout)

        self.namespace = os.environ.get("KUBEGRAPH_NAMESPACE", self.namespace)
        self.kubeconfig = os.environ.get("KUBECONFIG", self.kubeconfig)
        self.kube_context = os.environ.get("KUBEGRAPH_KUBE_CONTEXT", self.kube_context)

        if "KUBEGRAPH_IN_CLUSTER" in os.environ:
            self.in_cluster = is_truthy(os.environ["KUBEGRAPH_IN_CLUSTER"])

        endpoint_url = os.environ.get("KUBEGRAPH_ENDPOINT_URL", None)
        if endpoint_url:
            self.endpoint_url = endpoint_url

        proxy = os.environ.get("KUBEGRAPH_ENDPOINT_PROXY", None)
        if proxy is not None:
            self.endpoint_proxy = {"https": proxy}

        if "KUBEGRAPH_DISABLE_CA_CHECK" in os.environ:
            self.ssl_verify = False

        if "KUBEGRAPH_DEBUG" in os.environ:
            self.log_level = logging.DEBUG
            self.debug = True

        value = os.environ.get("KUBEGRAPH_LOG_LEVEL", None)
        if value is not None:
            self._set_log_level(value)

    def normalise(self) -> None:
        """
        Bring values set from the configuration file or by keyword to the types the
        environment path produces.  Invalid values fall back to the defaults.
        """
        self.batch_size = self._positive_int("batch_size", self.batch_size, self.DEFAULT_BATCH_SIZE)
        self.max_workers = self._positive_int("max_workers", self.max_workers, self.DEFAULT_MAX_WORKERS)
        self.exec_timeout = self._seconds("exec_timeout", self.exec_timeout, self.DEFAULT_EXEC_TIMEOUT)
        self.pass_timeout = self._seconds("pass_timeout", self.pass_timeout, None)
        self.timeout = self._seconds("timeout", self.timeout, self.DEFAULT_TIMEOUT)

        if isinstance(self.in_cluster, str):
            self.in_cluster = is_truthy(self.in_cluster)
        if isinstance(self.ssl_verify, str):
            self.ssl_verify = is_truthy(self.ssl_verify)

        if isinstance(self.endpoint_proxy, str):
            self.endpoint_proxy = {"https": self.endpoint_proxy}
        elif not self.endpoint_proxy:
            self.endpoint_proxy = {}

        if self.endpoint_url is not None:
            self.endpoint_url = str(self.endpoint_url)
            # Remove any trailing slash (if any)
            if self.endpoint_url.endswith("/"):
                self.endpoint_url = self.endpoint_url[:-1]

    @staticmethod
    def _positive_int(name: str, value: Any, default: int) -> int:
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            parsed = int(value)
            if parsed < 1:
                raise ValueError(value)
            return parsed
        except (TypeError, ValueError):
            logger.warning(f"Likely invalid {name}={value} value.  Using default.")
            return default

    @staticmethod
    def _seconds(name: str, value: Any, default: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            parsed = float(value)
            if parsed < 0:
                raise ValueError(value)
            return parsed
        except (TypeError, ValueError):
            logger.warning(f"Likely invalid {name}={value} value.  Using default.")
            return default

    def _set_log_level(self, value: str) -> None:
        level = LOG_LEVELS.get(value.lower(), None)
        if level is None:
            logger.warning(f"Unknown log level specified: {value}")
            return
        self.log_level = level
        self.debug = level == logging.DEBUG

    @staticmethod
    def _int_from_env(name: str, default: int) -> int:
        value = os.environ.get(name, None)
        if value is None:
            return default
        try:
            parsed = int(value)
            if parsed < 1:
                raise ValueError(value)
            return parsed
        except ValueError:
            logger.warning(f"Likely invalid {name}={value} value.  Using default.")
            return default

    @staticmethod
    def _seconds_from_env(name: str, default: Optional[float]) -> Optional[float]:
        # Durations are given in milliseconds in the environment
        value = os.environ.get(name, None)
        if value is None:
            return default
        try:
            return int(value) / 1000
        except ValueError:
            logger.warning(f"Likely invalid {name}={value} value.  Using default.")
            logger.warning(f"{name} should specify a duration in milliseconds.")
            return default
