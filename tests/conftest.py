"""Shared test fixtures for hvstorage tests."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import pytest

from hvstorage.core.errors import BackendError, NodeQueryError
from hvstorage.core.models import VirtualDisk, VirtualMachine


class FakeBackend:
    """In-memory cluster: names, nodes and VMs, with optional failures."""

    def __init__(
        self,
        local_cluster: Optional[str] = "Cluster01",
        clusters: Optional[Dict[str, List[str]]] = None,
        vms: Optional[Dict[str, List[VirtualMachine]]] = None,
        failing_nodes: Iterable[str] = (),
    ):
        self.local_cluster = local_cluster
        self.clusters = clusters if clusters is not None else {"Cluster01": ["Node1"]}
        self.vms = vms or {}
        self.failing_nodes = set(failing_nodes)
        self.calls: List[tuple] = []
        self.closed = False

    def resolve_local_cluster_name(self) -> str:
        self.calls.append(("resolve_local_cluster_name",))
        if self.local_cluster is None:
            raise BackendError("The cluster service is not running")
        return self.local_cluster

    def validate_cluster_reachable(self, name: str) -> bool:
        self.calls.append(("validate_cluster_reachable", name))
        return name in self.clusters

    def list_cluster_nodes(self, cluster_name: str) -> List[str]:
        self.calls.append(("list_cluster_nodes", cluster_name))
        return list(self.clusters[cluster_name])

    def list_vms(self, node_name: str) -> List[VirtualMachine]:
        self.calls.append(("list_vms", node_name))
        if node_name in self.failing_nodes:
            raise NodeQueryError(node_name, "The RPC server is unavailable")
        return list(self.vms.get(node_name, []))

    def close(self):
        self.closed = True


def vm(name: str, *disks: tuple) -> VirtualMachine:
    """vm("VM1", ("IDE", "C:\\...vhdx"), ...)"""
    return VirtualMachine(name=name, disks=[VirtualDisk(controller_type=c, path=p) for c, p in disks])


def scripted(*answers: str):
    """input() replacement returning the given answers in order."""
    remaining = list(answers)
    prompts: List[str] = []

    def _input(prompt: str) -> str:
        prompts.append(prompt)
        return remaining.pop(0)

    _input.prompts = prompts
    return _input


@pytest.fixture
def single_node_cluster() -> FakeBackend:
    return FakeBackend(
        clusters={"Cluster01": ["Node1"]},
        vms={"Node1": [vm("VM1", ("IDE", r"C:\ClusterStorage\Volume1\VM1\disk.vhdx"))]},
    )


@pytest.fixture
def three_node_cluster() -> FakeBackend:
    return FakeBackend(
        clusters={"Cluster01": ["Node1", "Node2", "Node3"]},
        vms={
            "Node1": [
                vm("VM1",
                   ("IDE", r"C:\ClusterStorage\Volume1\VM1\os.vhdx"),
                   ("SCSI", r"C:\ClusterStorage\Volume2\VM1\data.vhdx")),
            ],
            "Node3": [
                vm("VM3", ("SCSI", r"C:\ClusterStorage\Volume4\VM3\os.vhdx")),
                vm("VM4"),
            ],
        },
        failing_nodes={"Node2"},
    )


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop handlers the CLI attached to the root logger during a test."""
    yield
    from hvstorage.cli import main as cli_main

    root = logging.getLogger()
    for handler in cli_main._handlers:
        root.removeHandler(handler)
        handler.close()
    cli_main._handlers.clear()
