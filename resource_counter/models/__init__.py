"""Data models for the AWS Resource Counter."""

from .cluster import ClusterInfo, NodeGroupInfo
from .counts import ErrorRecord, ResourceCount
from .enums import NodeCountMode, RegionScope
from .report import InventoryReport

__all__ = [
    "ClusterInfo",
    "NodeGroupInfo",
    "ErrorRecord",
    "ResourceCount",
    "NodeCountMode",
    "RegionScope",
    "InventoryReport",
]
