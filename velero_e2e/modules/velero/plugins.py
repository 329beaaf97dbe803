"""Provider to plugin image lookup."""
from typing import Dict, List, Tuple

PROVIDER_PLUGINS: Dict[str, Tuple[str, ...]] = {
    'aws': ('velero/velero-plugin-for-aws:v1.1.0',),
    'azure': ('velero/velero-plugin-for-microsoft-azure:v1.1.1',),
    'vsphere': (
        'velero/velero-plugin-for-aws:v1.1.0',
        'velero/velero-plugin-for-vsphere:v1.0.2',
    ),
}

# An unknown provider has no usable plugin, but still yields one entry.
NO_PLUGIN = ''


def get_provider_plugins(provider: str) -> List[str]:
    """Return the plugin images to install for a provider.

    Unknown providers map to ``[NO_PLUGIN]``, never to an empty list or None.
    """
    return list(PROVIDER_PLUGINS.get(provider, (NO_PLUGIN,)))
