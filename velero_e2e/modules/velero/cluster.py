"""Kubernetes-side collaborators for installing and removing Velero."""
import logging
import os
import subprocess
import sys
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, Optional

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient

from velero_e2e.config import Config
from velero_e2e.errors import ClusterUnavailableError, ConfigurationError, ReadinessTimeoutError
from .configuration import format_key_value_map
from .models import InstallConfig

logger = logging.getLogger("velero_e2e.velero.cluster")

VELERO_DEPLOYMENT = "velero"
NODE_AGENT_DAEMONSET = "restic"
VELERO_COMPONENT_SELECTOR = "component=velero"


def load_kubeconfig(path: Optional[str] = None) -> Optional[str]:
    """
    Load the kubeconfig from a given path, the KUBECONFIG_CONTENT env var,
    or the default location. Returns the path used, if any.
    """
    # CI/CD secret-based loading
    if "KUBECONFIG_CONTENT" in os.environ:
        temp_path = "/tmp/ci-kubeconfig.yaml"
        with open(temp_path, "w") as f:
            f.write(os.environ["KUBECONFIG_CONTENT"])
        config.load_kube_config(config_file=temp_path)
        return temp_path

    if path:
        resolved = Path(os.path.expanduser(path)).resolve()
        if not resolved.exists():
            raise FileNotFoundError(f"❌ Kubeconfig not found: {resolved}")
        config.load_kube_config(config_file=str(resolved))
        return str(resolved)

    config.load_kube_config()
    return None


def install_args(install_config: InstallConfig) -> List[str]:
    """Build the `velero install` flags for an InstallConfig."""
    args = [
        "install",
        "--provider", install_config.provider,
        "--bucket", install_config.bucket,
        "--secret-file", install_config.credentials_file,
        "--namespace", install_config.namespace,
    ]
    plugins = [p for p in install_config.plugins if p]
    if plugins:
        args += ["--plugins", ",".join(plugins)]
    if install_config.prefix:
        args += ["--prefix", install_config.prefix]
    if install_config.image:
        args += ["--image", install_config.image]
    if install_config.backup_storage_config:
        args += ["--backup-location-config", format_key_value_map(install_config.backup_storage_config)]
    if install_config.volume_snapshot_config:
        args += ["--snapshot-location-config", format_key_value_map(install_config.volume_snapshot_config)]
    if install_config.features:
        args += ["--features", install_config.features]
    if install_config.use_node_agent:
        args += ["--use-restic", "--use-volume-snapshots=false"]
    return args


class ClusterBackend(ABC):
    """Operations the installer delegates to the cluster."""

    @abstractmethod
    def ensure_cluster_exists(self) -> None:
        ...

    @abstractmethod
    def build_resources(self, install_config: InstallConfig) -> List[Dict[str, Any]]:
        """Derive the manifests to apply for an installation."""
        ...

    @abstractmethod
    def apply_resources(self, resources: List[Dict[str, Any]], out: IO[str] = sys.stdout) -> None:
        """Create the manifests in the cluster, writing one line per object to out."""
        ...

    @abstractmethod
    def wait_for_deployment(self, namespace: str) -> None:
        """Block until the Velero deployment is ready or raise."""
        ...

    @abstractmethod
    def wait_for_daemonset(self, namespace: str) -> None:
        """Block until the node-agent daemon set is ready or raise."""
        ...


class KubernetesBackend(ClusterBackend):
    """ClusterBackend backed by the kubernetes Python client."""

    def __init__(
        self,
        velero_cli: Optional[str] = None,
        kubeconfig: Optional[str] = None,
        ready_timeout: Optional[float] = None,
        ready_interval: Optional[float] = None,
        api_client: Optional[client.ApiClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.velero_cli = velero_cli or Config.VELERO_CLI
        self.kubeconfig = kubeconfig or Config.KUBECONFIG or None
        self.ready_timeout = Config.READY_TIMEOUT if ready_timeout is None else ready_timeout
        self.ready_interval = Config.READY_INTERVAL if ready_interval is None else ready_interval
        self._api_client = api_client
        self._sleep = sleep

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            load_kubeconfig(self.kubeconfig)
            self._api_client = client.ApiClient()
        return self._api_client

    def ensure_cluster_exists(self) -> None:
        try:
            version = client.VersionApi(self.api_client).get_code()
        except Exception as e:
            raise ClusterUnavailableError(f"Kubernetes cluster is not reachable: {e}") from e
        logger.info(f"☸️  Connected to Kubernetes {version.git_version}")

    def build_resources(self, install_config: InstallConfig) -> List[Dict[str, Any]]:
        argv = [self.velero_cli] + install_args(install_config) + ["--dry-run", "-o", "yaml"]
        logger.debug(f"💻 Rendering manifests: {' '.join(argv)}")
        try:
            result = subprocess.run(argv, check=True, text=True, capture_output=True)
        except OSError as e:
            raise ConfigurationError(f"Failed to run {self.velero_cli}: {e}") from e
        except subprocess.CalledProcessError as e:
            raise ConfigurationError(
                f"velero install --dry-run failed (exit code: {e.returncode})\n{e.stderr}"
            ) from e

        resources: List[Dict[str, Any]] = []
        try:
            for doc in yaml.safe_load_all(result.stdout):
                if not doc:
                    continue
                if doc.get("kind") == "List":
                    resources.extend(item for item in doc.get("items") or [] if item)
                else:
                    resources.append(doc)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse rendered manifests: {e}") from e
        return resources

    def apply_resources(self, resources: List[Dict[str, Any]], out: IO[str] = sys.stdout) -> None:
        docs = [doc for doc in resources if doc.get("kind") and doc.get("apiVersion")]
        crds = [doc for doc in docs if doc["kind"] == "CustomResourceDefinition"]
        others = [doc for doc in docs if doc["kind"] != "CustomResourceDefinition"]

        # Custom resources can only be created once their definitions are served.
        dyn_client = DynamicClient(self.api_client)
        for doc in crds:
            self._create(dyn_client, doc, out)
        for doc in crds:
            self.wait_for_crd(doc["metadata"]["name"])
        for doc in others:
            self._create(dyn_client, doc, out)

    def _create(self, dyn_client: DynamicClient, doc: Dict[str, Any], out: IO[str]) -> None:
        kind = doc["kind"]
        metadata = doc.get("metadata", {})
        name = metadata.get("name", "")
        resource = dyn_client.resources.get(api_version=doc["apiVersion"], kind=kind)
        try:
            if resource.namespaced:
                resource.create(body=doc, namespace=metadata.get("namespace", "default"))
            else:
                resource.create(body=doc)
            out.write(f"{kind}/{name}: created\n")
        except ApiException as e:
            if e.status != 409:
                raise
            out.write(f"{kind}/{name}: already exists, proceeding\n")

    def wait_for_crd(self, name: str) -> None:
        extensions = client.ApiextensionsV1Api(self.api_client)

        def is_established() -> bool:
            crd = extensions.read_custom_resource_definition(name)
            conditions = (crd.status and crd.status.conditions) or []
            return any(c.type == "Established" and c.status == "True" for c in conditions)

        self._poll(f"CRD {name}", is_established)

    def _poll(self, what: str, is_ready: Callable[[], bool]) -> None:
        deadline = time.monotonic() + self.ready_timeout
        while True:
            try:
                if is_ready():
                    logger.info(f"✅ {what} is ready")
                    return
            except ApiException as e:
                if e.status != 404:
                    raise
                logger.debug(f"{what} not found yet")
            if time.monotonic() >= deadline:
                raise ReadinessTimeoutError(f"Timed out after {self.ready_timeout}s waiting for {what}")
            self._sleep(self.ready_interval)

    def wait_for_deployment(self, namespace: str) -> None:
        apps = client.AppsV1Api(self.api_client)

        def is_ready() -> bool:
            deploy = apps.read_namespaced_deployment_status(VELERO_DEPLOYMENT, namespace)
            conditions = (deploy.status and deploy.status.conditions) or []
            return any(c.type == "Available" and c.status == "True" for c in conditions)

        self._poll(f"deployment {namespace}/{VELERO_DEPLOYMENT}", is_ready)

    def wait_for_daemonset(self, namespace: str) -> None:
        apps = client.AppsV1Api(self.api_client)

        def is_ready() -> bool:
            ds = apps.read_namespaced_daemon_set_status(NODE_AGENT_DAEMONSET, namespace)
            if ds.status is None or ds.status.observed_generation is None:
                return False
            return (ds.status.number_available or 0) == ds.status.desired_number_scheduled

        self._poll(f"daemonset {namespace}/{NODE_AGENT_DAEMONSET}", is_ready)


def teardown_velero(core_api: client.CoreV1Api, extensions_api: client.ApiextensionsV1Api, namespace: str) -> None:
    """Delete the Velero namespace and every Velero CRD.

    Objects that are already gone are ignored.
    """
    try:
        logger.info(f"🗑️  Deleting namespace {namespace}")
        core_api.delete_namespace(namespace)
    except ApiException as e:
        if e.status != 404:
            raise
        logger.info(f"🔍 Namespace {namespace} not found (skipped)")

    crds = extensions_api.list_custom_resource_definition(label_selector=VELERO_COMPONENT_SELECTOR)
    for crd in crds.items:
        try:
            logger.info(f"🗑️  Deleting CRD {crd.metadata.name}")
            extensions_api.delete_custom_resource_definition(crd.metadata.name)
        except ApiException as e:
            if e.status != 404:
                raise
