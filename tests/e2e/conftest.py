"""End-to-end fixtures: a K3S cluster with cert-manager installed.

The cluster runs in Docker through testcontainers; cert-manager is applied
from its release manifest with kubectl. Tests are skipped when either tool
is unavailable.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import subprocess
import time
import uuid
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import typer
import yaml
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs
from typer.testing import CliRunner

CERT_MANAGER_VERSION = os.environ.get("CERT_MANAGER_TEST_VERSION", "v1.16.2")
CERT_MANAGER_MANIFEST = (
    f"https://github.com/cert-manager/cert-manager/releases/download/"
    f"{CERT_MANAGER_VERSION}/cert-manager.yaml"
)
CERT_MANAGER_DEPLOYMENTS = ("cert-manager", "cert-manager-cainjector", "cert-manager-webhook")


def _docker_available() -> bool:
    """Check if Docker daemon is running."""
    try:
        result = subprocess.run(["docker", "info"], capture_output=True, timeout=10)
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


pytestmark = [
    pytest.mark.kubernetes,
    pytest.mark.e2e,
    pytest.mark.skipif(
        not _docker_available(),
        reason="Docker not available -- skipping cert-manager E2E tests",
    ),
    pytest.mark.skipif(
        shutil.which("kubectl") is None,
        reason="kubectl not available -- cannot install cert-manager",
    ),
]


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Apply the module markers to every test in this directory."""
    here = Path(__file__).parent
    for item in items:
        if here in item.path.parents:
            for marker in pytestmark:
                item.add_marker(marker)


# ============================================================================
# K3S Container
# ============================================================================

K3S_IMAGE = "rancher/k3s:v1.31.4-k3s1"


class K3SContainer(DockerContainer):  # type: ignore[misc]
    """Single-node K3S cluster inside Docker."""

    K8S_API_PORT = 6443

    def __init__(self, image: str = K3S_IMAGE) -> None:
        super().__init__(image)

        self.with_command(
            "server"
            " --disable=traefik"
            " --disable=metrics-server"
            " --tls-san=0.0.0.0"
            " --write-kubeconfig-mode=644"
        )
        self.with_exposed_ports(self.K8S_API_PORT)
        self.with_kwargs(
            privileged=True,
            tmpfs={"/run": "", "/var/run": ""},
        )

    def get_kubeconfig(self) -> str:
        """Extract kubeconfig YAML with rewritten server address."""
        exit_code, output = self.exec("cat /etc/rancher/k3s/k3s.yaml")
        if exit_code != 0:
            raise RuntimeError(f"Failed to read kubeconfig: {output}")

        config = yaml.safe_load(output.decode("utf-8"))

        host = self.get_container_host_ip()
        port = self.get_exposed_port(self.K8S_API_PORT)
        for cluster in config.get("clusters", []):
            cluster.get("cluster", {})["server"] = f"https://{host}:{port}"

        return yaml.dump(config)


def _kubectl(kubeconfig: Path, *args: str, timeout: float = 300) -> None:
    subprocess.run(
        ["kubectl", "--kubeconfig", str(kubeconfig), *args],
        check=True,
        capture_output=True,
        timeout=timeout,
    )


# ============================================================================
# Cluster Fixtures (Session-Scoped)
# ============================================================================


@pytest.fixture(scope="session")
def k3s_container() -> Generator[K3SContainer]:
    """Session-scoped K3S container for E2E tests."""
    container = K3SContainer()

    with container:
        wait_for_logs(container, "Node controller sync successful", timeout=120)
        time.sleep(2)
        yield container


@pytest.fixture(scope="session")
def kubeconfig_path(
    k3s_container: K3SContainer,
    tmp_path_factory: pytest.TempPathFactory,
) -> Path:
    """K3S kubeconfig with cert-manager installed and its webhook serving."""
    path = tmp_path_factory.mktemp("k3s-e2e") / "kubeconfig.yaml"
    path.write_text(k3s_container.get_kubeconfig())

    _kubectl(path, "apply", "-f", CERT_MANAGER_MANIFEST)
    for deployment in CERT_MANAGER_DEPLOYMENTS:
        _kubectl(
            path,
            "-n",
            "cert-manager",
            "wait",
            "--for=condition=Available",
            f"deployment/{deployment}",
            "--timeout=300s",
            timeout=320,
        )
    return path


# ============================================================================
# Typer App Factory
# ============================================================================


def create_verifier_app(kubeconfig_path: str) -> typer.Typer:
    """Create the verifier CLI wired to the test cluster."""
    from issuance_verifier.cli.commands import (
        register_run_commands,
        register_status_commands,
        register_wait_commands,
    )
    from issuance_verifier.integrations.kubernetes.client import KubernetesClient
    from issuance_verifier.integrations.kubernetes.config import ClusterConfig, VerifierConfig
    from issuance_verifier.services.kubernetes import CertManagerManager

    config = VerifierConfig(
        clusters={"test": ClusterConfig(kubeconfig=kubeconfig_path)},
        active_cluster="test",
    )
    client = KubernetesClient(config)

    def get_manager() -> CertManagerManager:
        return CertManagerManager(client)

    app = typer.Typer(name="issuance-verifier", add_completion=False)

    @app.callback()
    def root() -> None:
        """Issuance verifier E2E app."""

    register_wait_commands(app, get_manager, lambda: config)
    register_run_commands(app, get_manager, lambda: config)
    register_status_commands(app, lambda: client, lambda: config)
    return app


@pytest.fixture(scope="session")
def verifier_app(kubeconfig_path: Path) -> typer.Typer:
    return create_verifier_app(str(kubeconfig_path))


@pytest.fixture
def invoke(verifier_app: typer.Typer) -> Callable[..., Any]:
    """Invoke a verifier command against the test cluster."""
    runner = CliRunner()

    def _invoke(*args: str) -> Any:
        return runner.invoke(verifier_app, list(args))

    return _invoke


@pytest.fixture(scope="module")
def e2e_namespace(kubeconfig_path: Path) -> Generator[str]:
    """Module-scoped unique namespace for E2E test isolation."""
    from kubernetes import client, config

    config.load_kube_config(config_file=str(kubeconfig_path))

    ns_name = f"e2e-{uuid.uuid4().hex[:8]}"
    core_v1 = client.CoreV1Api()
    core_v1.create_namespace(body=client.V1Namespace(metadata=client.V1ObjectMeta(name=ns_name)))

    for _ in range(30):
        ns = core_v1.read_namespace(name=ns_name)
        if ns.status.phase == "Active":
            break
        time.sleep(0.5)

    yield ns_name

    with contextlib.suppress(Exception):
        core_v1.delete_namespace(name=ns_name)
