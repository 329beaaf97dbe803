"""Exception hierarchy for the velero-e2e harness."""
from typing import List, Optional


class VeleroE2EError(Exception):
    """Base class for every failure raised by velero-e2e."""
    pass


class ConfigurationError(VeleroE2EError):
    """Missing or invalid install parameters."""
    pass


class ProcessSpawnError(VeleroE2EError):
    """The executable could not be found or started."""

    def __init__(self, argv: List[str], reason: str):
        self.argv = list(argv)
        self.reason = reason
        super().__init__(f"Failed to start {argv[0]!r}: {reason}")


class ProcessExecutionError(VeleroE2EError):
    """The command ran but exited abnormally."""

    def __init__(self, argv: List[str], returncode: int):
        self.argv = list(argv)
        self.returncode = returncode
        super().__init__(f"Command {' '.join(argv)} exited with status {returncode}")


class OutputTooLargeError(VeleroE2EError):
    """The output capture window was saturated, so the output cannot be trusted."""

    def __init__(self, argv: List[str], limit: int):
        self.argv = list(argv)
        self.limit = limit
        super().__init__(
            f"Output of {' '.join(argv)} reached the {limit} byte capture limit"
        )


class MalformedOutputError(VeleroE2EError):
    """The status document could not be decoded."""
    pass


class PhaseMismatchError(VeleroE2EError):
    """The decoded phase is not the one that was expected."""

    def __init__(self, observed: str, expected: str, kind: Optional[str] = None, name: Optional[str] = None):
        self.observed = observed
        self.expected = expected
        self.kind = kind
        self.name = name
        subject = f"{kind} phase" if kind else "phase"
        if name:
            subject = f"{subject} of {name!r}"
        super().__init__(f"Unexpected {subject}: got {observed!r}, expecting {expected!r}")


class OperationCancelledError(VeleroE2EError):
    """The execution context was cancelled or its deadline passed."""
    pass


class ClusterUnavailableError(VeleroE2EError):
    """The target cluster could not be reached."""
    pass


class ReadinessTimeoutError(VeleroE2EError):
    """A deployed workload did not become ready in time."""
    pass


class InstallError(VeleroE2EError):
    """A stage of the installation failed."""
    pass
