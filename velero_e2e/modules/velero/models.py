"""Data models for Velero installation and operations."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

# If the JSON is bigger than 16K, there's probably something bad happening
DEFAULT_CAPTURE_LIMIT = 16 * 1024


class OperationKind(str, Enum):
    """Velero resources the harness drives."""
    BACKUP = 'backup'
    RESTORE = 'restore'


class Phase:
    """Phase values reported in a backup or restore status.

    Phases are opaque strings; they are only ever compared for equality.
    """
    NEW = 'New'
    IN_PROGRESS = 'InProgress'
    COMPLETED = 'Completed'
    PARTIALLY_FAILED = 'PartiallyFailed'
    FAILED = 'Failed'
    FAILED_VALIDATION = 'FailedValidation'


@dataclass
class InstallConfig:
    """Options for one Velero installation attempt."""
    provider: str
    credentials_file: str
    bucket: str
    prefix: str = ''
    backup_storage_config: Dict[str, str] = field(default_factory=dict)
    volume_snapshot_config: Dict[str, str] = field(default_factory=dict)
    plugins: List[str] = field(default_factory=list)
    features: str = ''
    use_node_agent: bool = False
    image: str = ''
    namespace: str = 'velero'
    wait: bool = True


@dataclass
class OperationRequest:
    """A single backup or restore request against the Velero CLI."""
    namespace: str
    kind: OperationKind
    name: str
    include_namespace: Optional[str] = None
    storage_location: Optional[str] = None
    from_backup: Optional[str] = None
    wait: bool = True

    def create_args(self) -> List[str]:
        """Build the argument vector that creates this operation."""
        args = ['--namespace', self.namespace, 'create', self.kind.value, self.name]
        if self.kind is OperationKind.BACKUP:
            args += [
                '--include-namespaces', self.include_namespace or '',
                '--default-volumes-to-restic',
            ]
        else:
            args += ['--from-backup', self.from_backup or '']
        if self.wait:
            args.append('--wait')
        if self.kind is OperationKind.BACKUP and self.storage_location:
            args += ['--storage-location', self.storage_location]
        return args

    def get_args(self) -> List[str]:
        return ['--namespace', self.namespace, self.kind.value, 'get', '-o', 'json', self.name]

    def describe_args(self) -> List[str]:
        return ['--namespace', self.namespace, self.kind.value, 'describe', self.name]

    def logs_args(self) -> List[str]:
        return ['--namespace', self.namespace, self.kind.value, 'logs', self.name]


@dataclass
class CapturedOutput:
    """A prefix of a command's standard output.

    ``data`` holds only the bytes actually read; ``limit`` is the capacity of
    the capture window the bytes were read into.
    """
    data: bytes
    limit: int
    returncode: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def saturated(self) -> bool:
        return self.size >= self.limit
