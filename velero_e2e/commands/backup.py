import typer

from velero_e2e.config import Config
from velero_e2e.errors import VeleroE2EError
from velero_e2e.modules.velero import BackupOperator, Phase
from . import fail, fetch_logs, new_context, new_runner

app = typer.Typer()


def _operator(velero_cli: str, namespace: str) -> BackupOperator:
    return BackupOperator(velero_cli, namespace, runner=new_runner())


@app.command("create")
def create_backup(
    name: str = typer.Option(..., help="Backup name"),
    include_namespace: str = typer.Option(..., help="Namespace to back up"),
    location: str = typer.Option("", help="Backup storage location override"),
    logs_on_failure: bool = typer.Option(True, help="Print describe/logs output if the backup fails"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Create a backup, wait for it, and verify it Completed."""
    operator = _operator(velero_cli, namespace)
    try:
        operator.create(new_context(), name, include_namespace, location or None)
    except VeleroE2EError as e:
        if logs_on_failure:
            fetch_logs(operator, name)
        fail(e)
    typer.echo(f"✅ Backup {name} completed")


@app.command("check")
def check_backup(
    name: str = typer.Option(..., help="Backup name"),
    phase: str = typer.Option(Phase.COMPLETED, help="Expected phase"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Check that a backup is in the expected phase."""
    try:
        _operator(velero_cli, namespace).check_phase(new_context(), name, phase)
    except VeleroE2EError as e:
        fail(e)
    typer.echo(f"✅ Backup {name} is {phase}")


@app.command("logs")
def backup_logs(
    name: str = typer.Option(..., help="Backup name"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Describe a backup and print its logs."""
    try:
        _operator(velero_cli, namespace).logs(new_context(), name)
    except VeleroE2EError as e:
        fail(e)
