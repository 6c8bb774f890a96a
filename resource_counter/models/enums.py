"""Enumerations for node counting policies and region scopes."""

from enum import Enum


class NodeCountMode(str, Enum):
    """Source of truth for EKS worker node counts.

    DESIRED sums the configured desired size of every managed node group.
    LIVE asks each cluster's Kubernetes API for the nodes actually registered.
    The two diverge while an autoscaler has not yet reconciled, and LIVE also
    sees self-managed and Fargate nodes that belong to no managed node group.
    """

    DESIRED = "desired"
    LIVE = "live"


class RegionScope(str, Enum):
    """Which region list a flat counter iterates over."""

    REGIONAL = "regional"
    LIGHTSAIL = "lightsail"
    GLOBAL = "global"
