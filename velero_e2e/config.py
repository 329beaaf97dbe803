"""Configuration management for the velero-e2e harness."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Harness configuration with sensible defaults."""

    # Velero CLI and server
    VELERO_CLI: str = os.getenv("VELERO_CLI", "velero")
    VELERO_NAMESPACE: str = os.getenv("VELERO_NAMESPACE", "velero")
    VELERO_IMAGE: str = os.getenv("VELERO_IMAGE", "velero/velero:main")
    VELERO_FEATURES: str = os.getenv("VELERO_FEATURES", "")

    # Object storage
    CLOUD_PROVIDER: str = os.getenv("CLOUD_PROVIDER", "")
    OBJECT_STORE_PROVIDER: str = os.getenv("OBJECT_STORE_PROVIDER", "")
    CREDENTIALS_FILE: str = os.getenv("CREDENTIALS_FILE", "")
    BSL_BUCKET: str = os.getenv("BSL_BUCKET", "")
    BSL_PREFIX: str = os.getenv("BSL_PREFIX", "")
    BSL_CONFIG: str = os.getenv("BSL_CONFIG", "")
    VSL_CONFIG: str = os.getenv("VSL_CONFIG", "")
    USE_VOLUME_SNAPSHOTS: bool = _env_bool("USE_VOLUME_SNAPSHOTS")

    # Command execution
    OUTPUT_CAPTURE_LIMIT: int = int(os.getenv("OUTPUT_CAPTURE_LIMIT", str(16 * 1024)))
    COMMAND_TIMEOUT: float = float(os.getenv("COMMAND_TIMEOUT", "0"))  # 0 disables the deadline

    # Readiness polling (in seconds)
    READY_TIMEOUT: int = int(os.getenv("READY_TIMEOUT", "300"))
    READY_INTERVAL: float = float(os.getenv("READY_INTERVAL", "5"))

    # Kubernetes
    KUBECONFIG: str = os.getenv("KUBECONFIG", "")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    @classmethod
    def command_timeout(cls):
        """Return the per-command deadline in seconds, or None when disabled."""
        return cls.COMMAND_TIMEOUT if cls.COMMAND_TIMEOUT > 0 else None
