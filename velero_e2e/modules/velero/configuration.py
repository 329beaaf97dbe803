"""Translation of install parameters into an InstallConfig."""
import logging
import os
from typing import Dict, Iterable, Mapping, Optional

from velero_e2e.errors import ConfigurationError
from .models import InstallConfig

logger = logging.getLogger("velero_e2e.velero.configuration")


def parse_key_value_map(raw: Optional[str]) -> Dict[str, str]:
    """Parse a ``key=value[,key=value...]`` string into an ordered mapping.

    An empty string yields an empty mapping. Later duplicates override earlier
    ones, the way repeated flags do on the Velero CLI.

    Raises:
        ConfigurationError: If any entry is not of the form ``key=value``
    """
    result: Dict[str, str] = {}
    if not raw:
        return result

    for entry in raw.split(','):
        key, sep, value = entry.partition('=')
        if not sep or not key:
            raise ConfigurationError(f"error parsing {entry!r}: expected key=value")
        result[key] = value
    return result


def format_key_value_map(mapping: Mapping[str, str]) -> str:
    """Inverse of parse_key_value_map."""
    return ','.join(f"{k}={v}" for k, v in mapping.items())


def build_install_config(
    provider: str,
    credentials_file: str,
    bucket: str,
    prefix: str,
    bsl_config: str,
    vsl_config: str,
    plugins: Iterable[str],
    features: str,
) -> InstallConfig:
    """Build the install options for a plugin provider.

    Args:
        provider: Object store provider name (e.g. 'aws')
        credentials_file: Path to the cloud credentials file
        bucket: Object store bucket for the backup storage location
        prefix: Key prefix inside the bucket
        bsl_config: Backup storage location config, ``key=value,...``
        vsl_config: Volume snapshot location config, ``key=value,...``
        plugins: Plugin images to install
        features: Feature flags passed to the server

    Returns:
        InstallConfig with an absolute credentials path

    Raises:
        ConfigurationError: If no credentials were supplied, the path cannot be
            resolved, or either config string is malformed
    """
    if not credentials_file:
        raise ConfigurationError("No credentials were supplied to use for E2E tests")

    try:
        real_path = os.path.abspath(credentials_file)
    except OSError as e:
        raise ConfigurationError(f"Failed to resolve credentials file {credentials_file!r}: {e}") from e

    install_config = InstallConfig(
        provider=provider,
        credentials_file=real_path,
        bucket=bucket,
        prefix=prefix,
        backup_storage_config=parse_key_value_map(bsl_config),
        volume_snapshot_config=parse_key_value_map(vsl_config),
        plugins=list(plugins),
        features=features,
        wait=True,
    )
    logger.debug(f"Built install options for provider {provider!r} (credentials: {real_path})")
    return install_config
