import typer

from velero_e2e.config import Config
from velero_e2e.errors import VeleroE2EError
from velero_e2e.modules.velero import LocationCreator
from . import fail, new_context, new_runner

app = typer.Typer()


@app.command("create")
def create_location(
    name: str = typer.Option(..., help="Backup storage location name"),
    provider: str = typer.Option(..., help="Object store provider"),
    bucket: str = typer.Option(..., help="Bucket name"),
    prefix: str = typer.Option("", help="Prefix inside the bucket"),
    config: str = typer.Option("", help="Location config (key=value,...)"),
    secret_name: str = typer.Option("", help="Secret holding the location credentials"),
    secret_key: str = typer.Option("", help="Key inside the credentials secret"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Register a backup storage location (not verified afterwards)."""
    creator = LocationCreator(velero_cli, namespace, runner=new_runner())
    try:
        creator.create(
            new_context(), name, provider, bucket,
            prefix=prefix, config=config, secret_name=secret_name, secret_key=secret_key,
        )
    except VeleroE2EError as e:
        fail(e)
    typer.echo(f"🪣 Backup storage location {name} requested")
