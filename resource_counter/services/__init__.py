"""Counting services for the AWS Resource Counter."""

from .activity_monitor import ActivityMonitor, LoggingActivityMonitor
from .eks_node_counter import EKSNodeCounter
from .flat_counters import FLAT_COUNTERS, FlatCounter
from .inventory_service import InventoryService
from .region_discovery_service import InvalidRegionError, RegionDiscoveryService
from .region_fan_out import fan_out_regions

__all__ = [
    "ActivityMonitor",
    "LoggingActivityMonitor",
    "EKSNodeCounter",
    "FLAT_COUNTERS",
    "FlatCounter",
    "InventoryService",
    "InvalidRegionError",
    "RegionDiscoveryService",
    "fan_out_regions",
]
