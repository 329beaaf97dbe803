import typer
from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from velero_e2e.config import Config
from . import fail


def uninstall(
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Namespace Velero is installed in"),
    kubeconfig: str = typer.Option(Config.KUBECONFIG, help="Path to kubeconfig"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Remove Velero and its CRDs from the current cluster."""
    from velero_e2e.modules.velero import uninstall_velero
    from velero_e2e.modules.velero.cluster import load_kubeconfig

    confirm = yes or typer.confirm(f"Are you sure you want to uninstall Velero from '{namespace}'?", default=False)
    if not confirm:
        print("❌ Uninstall cancelled.")
        raise typer.Exit()

    try:
        load_kubeconfig(kubeconfig or None)
        uninstall_velero(client.CoreV1Api(), client.ApiextensionsV1Api(), namespace)
    except (ApiException, ConfigException, FileNotFoundError) as e:
        fail(e)
    typer.echo("✅ Velero uninstalled.")
