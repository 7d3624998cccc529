"""soloconf: remote configuration for Hedera network deployments.

Keeps one versioned document per deployment in a Kubernetes ConfigMap:
  - Component registry (consensus nodes, proxies, mirror node, explorer, relay)
  - Cluster map with DNS metadata per cluster reference
  - Metadata with per-subsystem versions and migration stamp
  - Bounded command history and persisted common CLI flags
  - Drift validation of declared components against live pods
"""

__version__ = "0.4.0"
__description__ = "Remote configuration manager for Hedera network deployments"

from soloconf.core.manager import RemoteConfigManager
from soloconf.core.document import RemoteConfigDocument

__all__ = ["RemoteConfigManager", "RemoteConfigDocument", "__version__"]
