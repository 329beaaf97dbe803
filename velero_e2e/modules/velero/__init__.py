"""
Velero lifecycle management for end-to-end tests.

This package drives the Velero CLI and the cluster it runs against:

- configuration: install options from provider, credentials and storage settings
- plugins: provider to plugin image lookup
- runner: bounded-capture and streamed execution of the CLI under a cancellable context
- status: phase decoding and comparison
- installer / uninstaller: server installation, readiness and teardown
- operations: backup and restore with post-hoc phase verification
- location: backup storage location registration
"""

from .models import (
    DEFAULT_CAPTURE_LIMIT,
    CapturedOutput,
    InstallConfig,
    OperationKind,
    OperationRequest,
    Phase,
)
from .configuration import build_install_config, parse_key_value_map, format_key_value_map
from .plugins import PROVIDER_PLUGINS, get_provider_plugins
from .runner import ExecutionContext, OperationRunner
from .status import check_phase, decode_phase
from .cluster import ClusterBackend, KubernetesBackend, teardown_velero
from .installer import Installer, InstallStage, install_velero
from .uninstaller import uninstall_velero
from .operations import BackupOperator, RestoreOperator
from .location import LocationCreator

__all__ = [
    'DEFAULT_CAPTURE_LIMIT',
    'CapturedOutput',
    'InstallConfig',
    'OperationKind',
    'OperationRequest',
    'Phase',
    'build_install_config',
    'parse_key_value_map',
    'format_key_value_map',
    'PROVIDER_PLUGINS',
    'get_provider_plugins',
    'ExecutionContext',
    'OperationRunner',
    'check_phase',
    'decode_phase',
    'ClusterBackend',
    'KubernetesBackend',
    'teardown_velero',
    'Installer',
    'InstallStage',
    'install_velero',
    'uninstall_velero',
    'BackupOperator',
    'RestoreOperator',
    'LocationCreator',
]
