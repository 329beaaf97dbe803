"""Velero removal."""
import logging

from kubernetes import client

from .cluster import teardown_velero

logger = logging.getLogger("velero_e2e.velero.uninstaller")


def uninstall_velero(core_api: client.CoreV1Api, extensions_api: client.ApiextensionsV1Api, namespace: str) -> None:
    """Remove Velero using already-constructed clients; errors propagate unchanged."""
    logger.info(f"🧹 Uninstalling Velero from namespace {namespace}")
    teardown_velero(core_api, extensions_api, namespace)
