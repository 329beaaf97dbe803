import typer

from velero_e2e.config import Config
from velero_e2e.errors import VeleroE2EError
from . import fail


def install(
    cloud_provider: str = typer.Option(Config.CLOUD_PROVIDER, help="Cloud provider (aws, azure, vsphere, kind)"),
    object_store_provider: str = typer.Option(Config.OBJECT_STORE_PROVIDER, help="Object store provider (kind only)"),
    credentials_file: str = typer.Option(Config.CREDENTIALS_FILE, help="Cloud credentials file"),
    bucket: str = typer.Option(Config.BSL_BUCKET, help="Bucket for the default backup storage location"),
    prefix: str = typer.Option(Config.BSL_PREFIX, help="Prefix inside the bucket"),
    bsl_config: str = typer.Option(Config.BSL_CONFIG, help="Backup storage location config (key=value,...)"),
    vsl_config: str = typer.Option(Config.VSL_CONFIG, help="Volume snapshot location config (key=value,...)"),
    features: str = typer.Option(Config.VELERO_FEATURES, help="Server feature flags"),
    use_volume_snapshots: bool = typer.Option(
        Config.USE_VOLUME_SNAPSHOTS, help="Use provider snapshots instead of the restic node agent"
    ),
    image: str = typer.Option(Config.VELERO_IMAGE, help="Velero server image"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Namespace to install Velero into"),
):
    """Install Velero into the current cluster and wait until it is ready."""
    from velero_e2e.modules.velero import install_velero

    try:
        install_velero(
            image=image,
            namespace=namespace,
            cloud_provider=cloud_provider,
            object_store_provider=object_store_provider,
            use_volume_snapshots=use_volume_snapshots,
            credentials_file=credentials_file,
            bucket=bucket,
            prefix=prefix,
            bsl_config=bsl_config,
            vsl_config=vsl_config,
            features=features,
        )
    except VeleroE2EError as e:
        fail(e)
    typer.echo(f"✅ Velero installed in namespace {namespace}")
