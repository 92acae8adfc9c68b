# (c) Copyright IBM Corp. 2025

import os
from typing import Generator

import pytest

from tests.helpers import (
    ESTABLISHED_ROW,
    LISTEN_ROW,
    TCP_HEADER,
    UDP_HEADER,
    UDP_ROW,
    table,
)

ENVIRONMENT_PREFIXES = ("KUBEGRAPH_", "KUBECONFIG")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Every test starts without any kubegraph setting in the environment"""
    for name in list(os.environ):
        if name.startswith(ENVIRONMENT_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def tcp_table() -> str:
    return table(TCP_HEADER, LISTEN_ROW, ESTABLISHED_ROW)


@pytest.fixture
def udp_table() -> str:
    return table(UDP_HEADER, UDP_ROW)


@pytest.fixture
def empty_tcp_table() -> str:
    return table(TCP_HEADER)
