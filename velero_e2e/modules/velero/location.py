"""Registration of additional backup storage locations."""
import logging
from typing import List, Mapping, Optional, Union

from .configuration import format_key_value_map
from .runner import ExecutionContext, OperationRunner

logger = logging.getLogger("velero_e2e.velero.location")


class LocationCreator:
    """Issues `velero create backup-location`.

    Registration is not verified afterwards; callers that need the location to
    be Available must check it themselves.
    """

    def __init__(self, velero_cli: str, namespace: str, runner: Optional[OperationRunner] = None):
        self.velero_cli = velero_cli
        self.namespace = namespace
        self.runner = runner or OperationRunner()

    def build_args(
        self,
        name: str,
        provider: str,
        bucket: str,
        prefix: str = '',
        config: Union[str, Mapping[str, str], None] = None,
        secret_name: str = '',
        secret_key: str = '',
    ) -> List[str]:
        args = [
            self.velero_cli,
            '--namespace', self.namespace,
            'create', 'backup-location', name,
            '--provider', provider,
            '--bucket', bucket,
        ]
        if prefix:
            args += ['--prefix', prefix]

        if config and not isinstance(config, str):
            config = format_key_value_map(config)
        if config:
            args += ['--config', config]

        if secret_name and secret_key:
            args += ['--credential', f"{secret_name}={secret_key}"]
        return args

    def create(self, ctx: ExecutionContext, name: str, provider: str, bucket: str, **options) -> None:
        logger.info(f"🪣 Creating backup storage location {name} ({provider}://{bucket})")
        self.runner.run_streamed(ctx, self.build_args(name, provider, bucket, **options))
