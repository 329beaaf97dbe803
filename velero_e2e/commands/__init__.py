"""Shared helpers for CLI commands."""
import logging

import typer

from velero_e2e.config import Config
from velero_e2e.errors import VeleroE2EError
from velero_e2e.modules.velero import ExecutionContext, OperationRunner

logger = logging.getLogger("velero_e2e.commands")


def new_context() -> ExecutionContext:
    return ExecutionContext(timeout=Config.command_timeout())


def new_runner() -> OperationRunner:
    return OperationRunner(capture_limit=Config.OUTPUT_CAPTURE_LIMIT)


def fail(err: Exception) -> None:
    """Report an error and exit with status 1."""
    typer.secho(f"❌ {err}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def fetch_logs(operator, name: str) -> None:
    """Best-effort log retrieval; failures are reported, never raised."""
    try:
        operator.logs(new_context(), name)
    except VeleroE2EError as e:
        logger.warning(f"⚠️  Failed to retrieve logs for {name}: {e}")
