"""Shipping manifests to a cluster.

The package is organized into:
- shell_commands: Abstractions for helm command execution
- ship_record: The ship record configmap (lock, outcome, avast)
- shipper: Ship and avast orchestration
"""

from .ship_record import ShipRecord
from .shipper import Shipper

__all__ = ["ShipRecord", "Shipper"]
