"""Velero server installation.

The installer runs a fixed sequence of blocking stages and stops at the first
failure; nothing is retried here. Readiness polling is delegated to the
ClusterBackend.
"""
import logging
import sys
from enum import Enum
from typing import IO, Optional

from velero_e2e.errors import (
    ClusterUnavailableError,
    ConfigurationError,
    InstallError,
    VeleroE2EError,
)
from .cluster import ClusterBackend, KubernetesBackend
from .configuration import build_install_config
from .models import InstallConfig
from .plugins import get_provider_plugins

logger = logging.getLogger("velero_e2e.velero.installer")

KIND_PROVIDER = "kind"


class InstallStage(str, Enum):
    """Stages of an installation, in order."""
    NOT_STARTED = 'not_started'
    CLUSTER_CHECK = 'cluster_check'
    RESOURCE_BUILD = 'resource_build'
    RESOURCE_APPLY = 'resource_apply'
    DEPLOYMENT_READY = 'deployment_ready'
    DAEMONSET_READY = 'daemonset_ready'
    DONE = 'done'


def deploy_logs_hint(namespace: str) -> str:
    return (
        "\n\nError installing Velero. "
        f"Use `kubectl logs deploy/velero -n {namespace}` to check the deploy logs"
    )


class Installer:
    """Installs Velero into the current cluster and waits for it to be ready."""

    def __init__(self, backend: Optional[ClusterBackend] = None, out: IO[str] = sys.stdout):
        self.backend = backend or KubernetesBackend()
        self.out = out
        self.stage = InstallStage.NOT_STARTED

    def _enter(self, stage: InstallStage) -> None:
        self.stage = stage
        logger.debug(f"Install stage: {stage.value}")

    def install(self, install_config: InstallConfig) -> None:
        """Run every install stage for the given options.

        Raises:
            ClusterUnavailableError: If the cluster cannot be reached
            ConfigurationError: If the options cannot be turned into manifests
            InstallError: If applying or readiness fails; the message points at
                the deployment logs
        """
        hint = deploy_logs_hint(install_config.namespace)

        self._enter(InstallStage.CLUSTER_CHECK)
        try:
            self.backend.ensure_cluster_exists()
        except VeleroE2EError as e:
            raise ClusterUnavailableError(f"Failed to ensure kubernetes cluster exists: {e}") from e

        self._enter(InstallStage.RESOURCE_BUILD)
        try:
            resources = self.backend.build_resources(install_config)
        except VeleroE2EError as e:
            raise ConfigurationError(f"Failed to translate install options for Velero: {e}") from e

        self._enter(InstallStage.RESOURCE_APPLY)
        logger.info(f"🚀 Installing Velero into namespace {install_config.namespace}")
        try:
            self.backend.apply_resources(resources, self.out)
        except Exception as e:
            raise InstallError(f"{e}{hint}") from e

        self._enter(InstallStage.DEPLOYMENT_READY)
        logger.info("⏳ Waiting for Velero deployment to be ready.")
        try:
            self.backend.wait_for_deployment(install_config.namespace)
        except Exception as e:
            raise InstallError(f"{e}{hint}") from e

        if install_config.use_node_agent:
            self._enter(InstallStage.DAEMONSET_READY)
            logger.info("⏳ Waiting for Velero restic daemonset to be ready.")
            try:
                self.backend.wait_for_daemonset(install_config.namespace)
            except Exception as e:
                raise InstallError(f"{e}{hint}") from e

        self._enter(InstallStage.DONE)
        logger.info("✅ Velero is installed and ready")


def install_velero(
    image: str,
    namespace: str,
    cloud_provider: str,
    object_store_provider: str,
    use_volume_snapshots: bool,
    credentials_file: str,
    bucket: str,
    prefix: str,
    bsl_config: str,
    vsl_config: str,
    features: str,
    installer: Optional[Installer] = None,
) -> InstallConfig:
    """Resolve the object store provider, build options, and install Velero.

    On a real cloud the object store is always the cloud's own; only `kind`
    clusters take an explicit object store provider.

    Returns:
        The InstallConfig that was installed
    """
    if cloud_provider != KIND_PROVIDER:
        if object_store_provider:
            raise ConfigurationError("For cloud platforms, object store plugin cannot be overridden")
        object_store_provider = cloud_provider
    elif not object_store_provider:
        raise ConfigurationError(
            "No object store provider specified - must be specified when using kind as the cloud provider"
        )

    try:
        install_config = build_install_config(
            object_store_provider, credentials_file, bucket, prefix,
            bsl_config, vsl_config, get_provider_plugins(object_store_provider), features,
        )
    except ConfigurationError as e:
        raise ConfigurationError(
            f"Failed to get Velero install options for plugin provider {object_store_provider}: {e}"
        ) from e

    install_config.use_node_agent = not use_volume_snapshots
    install_config.image = image
    install_config.namespace = namespace

    installer = installer or Installer()
    try:
        installer.install(install_config)
    except InstallError as e:
        raise InstallError(f"Failed to install Velero in cluster: {e}") from e
    return install_config
