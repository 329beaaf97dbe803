import typer

from velero_e2e.config import Config
from velero_e2e.errors import VeleroE2EError
from velero_e2e.modules.velero import Phase, RestoreOperator
from . import fail, fetch_logs, new_context, new_runner

app = typer.Typer()


def _operator(velero_cli: str, namespace: str) -> RestoreOperator:
    return RestoreOperator(velero_cli, namespace, runner=new_runner())


@app.command("create")
def create_restore(
    name: str = typer.Option(..., help="Restore name"),
    from_backup: str = typer.Option(..., help="Backup to restore from"),
    logs_on_failure: bool = typer.Option(True, help="Print describe/logs output if the restore fails"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Create a restore, wait for it, and verify it Completed."""
    operator = _operator(velero_cli, namespace)
    try:
        operator.create(new_context(), name, from_backup)
    except VeleroE2EError as e:
        if logs_on_failure:
            fetch_logs(operator, name)
        fail(e)
    typer.echo(f"✅ Restore {name} completed")


@app.command("check")
def check_restore(
    name: str = typer.Option(..., help="Restore name"),
    phase: str = typer.Option(Phase.COMPLETED, help="Expected phase"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Check that a restore is in the expected phase."""
    try:
        _operator(velero_cli, namespace).check_phase(new_context(), name, phase)
    except VeleroE2EError as e:
        fail(e)
    typer.echo(f"✅ Restore {name} is {phase}")


@app.command("logs")
def restore_logs(
    name: str = typer.Option(..., help="Restore name"),
    velero_cli: str = typer.Option(Config.VELERO_CLI, help="Path to the velero binary"),
    namespace: str = typer.Option(Config.VELERO_NAMESPACE, help="Velero namespace"),
):
    """Describe a restore and print its logs."""
    try:
        _operator(velero_cli, namespace).logs(new_context(), name)
    except VeleroE2EError as e:
        fail(e)
