"""Backup and restore operations driven through the Velero CLI."""
import logging
from typing import List, Optional

from .models import OperationKind, OperationRequest, Phase
from .runner import ExecutionContext, OperationRunner
from .status import check_phase

logger = logging.getLogger("velero_e2e.velero.operations")


class VeleroOperator:
    """Shared plumbing for the backup and restore operators."""

    kind: OperationKind

    def __init__(self, velero_cli: str, namespace: str, runner: Optional[OperationRunner] = None):
        self.velero_cli = velero_cli
        self.namespace = namespace
        self.runner = runner or OperationRunner()

    def _argv(self, args: List[str]) -> List[str]:
        return [self.velero_cli] + args

    def _request(self, name: str, **params) -> OperationRequest:
        return OperationRequest(namespace=self.namespace, kind=self.kind, name=name, **params)

    def _create(self, ctx: ExecutionContext, request: OperationRequest) -> str:
        self.runner.run_streamed(ctx, self._argv(request.create_args()))
        # --wait only says the CLI returned, not that the result is Completed.
        return self.check_phase(ctx, request.name, Phase.COMPLETED)

    def check_phase(self, ctx: ExecutionContext, name: str, expected: str = Phase.COMPLETED) -> str:
        """Query the resource with `get -o json` and require the expected phase.

        Returns:
            The observed phase
        """
        request = self._request(name)
        output = self.runner.run_captured(ctx, self._argv(request.get_args()))
        return check_phase(output, expected, kind=self.kind.value, name=name)

    def logs(self, ctx: ExecutionContext, name: str) -> None:
        """Stream `describe` and then `logs` for the resource to the console.

        This is diagnostics only. A failure stops the retrieval and is raised,
        but it says nothing about the outcome of the operation itself.
        """
        request = self._request(name)
        self.runner.run_streamed(ctx, self._argv(request.describe_args()))
        self.runner.run_streamed(ctx, self._argv(request.logs_args()))


class BackupOperator(VeleroOperator):
    kind = OperationKind.BACKUP

    def create(
        self,
        ctx: ExecutionContext,
        backup_name: str,
        namespace: str,
        backup_location: Optional[str] = None,
    ) -> str:
        """Back up a namespace and verify the backup Completed.

        Args:
            ctx: Execution context shared by every command of the operation
            backup_name: Name of the backup to create
            namespace: Namespace to include in the backup
            backup_location: Optional storage location override

        Returns:
            The verified phase
        """
        logger.info(f"📦 Backing up namespace {namespace} as {backup_name}")
        request = self._request(
            backup_name,
            include_namespace=namespace,
            storage_location=backup_location or None,
        )
        phase = self._create(ctx, request)
        logger.info(f"✅ Backup {backup_name} is {phase}")
        return phase


class RestoreOperator(VeleroOperator):
    kind = OperationKind.RESTORE

    def create(self, ctx: ExecutionContext, restore_name: str, backup_name: str) -> str:
        """Restore from a backup and verify the restore Completed."""
        logger.info(f"♻️  Restoring {backup_name} as {restore_name}")
        phase = self._create(ctx, self._request(restore_name, from_backup=backup_name))
        logger.info(f"✅ Restore {restore_name} is {phase}")
        return phase
