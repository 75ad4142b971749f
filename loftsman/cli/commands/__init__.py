"""CLI command modules.

Command Groups:
- manifest: Create and validate manifests
- ship: Release a manifest's charts
- avast: Clear a stuck ship record
"""

from .manifest import manifest_app
from .ship import avast, ship

__all__ = [
    "manifest_app",
    "ship",
    "avast",
]
