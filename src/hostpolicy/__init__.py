"""hostpolicy.

A host-side configuration-management client:
- fetches the `default` policy (plus included policies and modules) over a
  pluggable transport
- assembles them into a single Python artifact bound to this host's facts
- runs it once, with only one instance per host at a time
"""

__version__ = "0.1.0"

from hostpolicy.core.config import ClientSettings, Config

__all__ = ["__version__", "ClientSettings", "Config"]
