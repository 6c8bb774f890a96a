# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""EKS worker node counting.

Walks three levels per region: clusters, then per cluster either its managed
node groups (DESIRED mode) or the nodes registered with its Kubernetes API
(LIVE mode). Any level can fail independently. A failure records one error
for the region, cluster or node group concerned and the walk moves on to the
next sibling, so the returned total always covers every item that did not
fail.
"""

import logging

from ..clients.pagination import count_items
from ..clients.service_factory import ServiceFactory
from ..clients.services import AWSAPIError, EKSService
from ..models.counts import ResourceCount
from ..models.enums import NodeCountMode
from .activity_monitor import ActivityMonitor
from .region_discovery_service import RegionDiscoveryService
from .region_fan_out import fan_out_regions

logger = logging.getLogger(__name__)

FAMILY = "eks_nodes"


class EKSNodeCounter:
    """
    Counts EKS worker nodes for one account.

    Every traversal level returns its own ResourceCount and the caller
    merges them, so errors keep the order in which items were visited.
    """

    def __init__(
        self,
        factory: ServiceFactory,
        monitor: ActivityMonitor,
        mode: NodeCountMode = NodeCountMode.DESIRED,
        max_concurrent_regions: int = 1,
    ):
        """
        Initialize with dependencies and configuration.

        Args:
            factory: Produces region-bound EKS services and Kubernetes clients
            monitor: Receives progress and error notifications
            mode: DESIRED sums node group desired sizes, LIVE lists registered nodes
            max_concurrent_regions: Regions counted at the same time (1 = sequential)
        """
        self.factory = factory
        self.monitor = monitor
        self.mode = NodeCountMode(mode)
        self.max_concurrent_regions = max_concurrent_regions

    def count(self, all_regions: bool = False) -> ResourceCount:
        """
        Count nodes in the default region, or in every enabled region.

        Args:
            all_regions: Visit every enabled region. Falls back to the
                         default region if the region list is unavailable.

        Returns:
            Node total and the errors met along the way
        """
        regions = RegionDiscoveryService(self.factory, self.monitor).resolve_regions(all_regions)
        return self.count_regions(regions)

    def count_regions(self, regions: list[str]) -> ResourceCount:
        """Count nodes across the given regions and report the outcome."""
        self.monitor.start_action("Retrieving EKS node counts")

        result = ResourceCount.combine(
            fan_out_regions(regions, self.count_region, self.max_concurrent_regions)
        )

        self.monitor.end_action("OK (%d)", result.total)
        for error in result.errors:
            self.monitor.sub_resource_error(error.message)

        logger.info(
            f"EKS node count complete: mode={self.mode.value}, regions={len(regions)}, "
            f"total={result.total}, errors={len(result.errors)}"
        )
        return result

    def count_region(self, region: str) -> ResourceCount:
        """
        Count nodes of every cluster in one region.

        If the cluster listing fails, one error is recorded for the region.
        Clusters read from earlier pages keep their contribution.
        """
        self.monitor.message(".")
        region_name = region or self.factory.get_current_region()
        eks = self.factory.get_eks_service(region)

        result = ResourceCount()
        try:
            for page in eks.cluster_pages():
                for cluster_name in page.items:
                    result = result.merge(self.count_cluster(eks, cluster_name, region, region_name))
        except AWSAPIError as e:
            logger.warning(f"Cluster listing failed in {region_name}: {str(e)}")
            result = result.merge(
                ResourceCount.failure(
                    f"Unable to list clusters for region {region_name} ({str(e)})",
                    resource="eks:cluster",
                    region=region_name,
                )
            )
        return result

    def count_cluster(
        self,
        eks: EKSService,
        cluster_name: str,
        region: str,
        region_name: str,
    ) -> ResourceCount:
        """Count one cluster with the configured policy. Never raises AWSAPIError."""
        if self.mode == NodeCountMode.LIVE:
            return self._count_live_nodes(eks, cluster_name, region, region_name)
        return self._count_desired_nodes(eks, cluster_name, region_name)

    def _count_desired_nodes(
        self,
        eks: EKSService,
        cluster_name: str,
        region_name: str,
    ) -> ResourceCount:
        result = ResourceCount()
        try:
            for page in eks.nodegroup_pages(cluster_name):
                for nodegroup_name in page.items:
                    result = result.merge(
                        self._count_nodegroup(eks, cluster_name, nodegroup_name, region_name)
                    )
        except AWSAPIError as e:
            result = result.merge(
                ResourceCount.failure(
                    f"Unable to list node groups for cluster {cluster_name} "
                    f"in region {region_name} ({str(e)})",
                    resource=f"eks:cluster/{cluster_name}",
                    region=region_name,
                )
            )
        return result

    def _count_nodegroup(
        self,
        eks: EKSService,
        cluster_name: str,
        nodegroup_name: str,
        region_name: str,
    ) -> ResourceCount:
        try:
            nodegroup = eks.describe_nodegroup(cluster_name, nodegroup_name)
        except AWSAPIError as e:
            return ResourceCount.failure(
                f"Unable to describe node group {nodegroup_name} of cluster {cluster_name} "
                f"in region {region_name} ({str(e)})",
                resource=f"eks:nodegroup/{cluster_name}/{nodegroup_name}",
                region=region_name,
            )
        return ResourceCount(total=nodegroup.desired_size)

    def _count_live_nodes(
        self,
        eks: EKSService,
        cluster_name: str,
        region: str,
        region_name: str,
    ) -> ResourceCount:
        resource = f"eks:cluster/{cluster_name}"

        try:
            cluster = eks.describe_cluster(cluster_name)
        except AWSAPIError as e:
            return ResourceCount.failure(
                f"Unable to retrieve cluster information for {cluster_name} "
                f"in region {region_name} ({str(e)})",
                resource=resource,
                region=region_name,
            )

        try:
            kubernetes = self.factory.get_kubernetes_service(cluster, region)
        except AWSAPIError as e:
            return ResourceCount.failure(
                f"Unable to create a Kubernetes client for cluster {cluster_name} "
                f"in region {region_name} ({str(e)})",
                resource=resource,
                region=region_name,
            )

        try:
            return ResourceCount(total=count_items(kubernetes.node_pages()))
        except AWSAPIError as e:
            return ResourceCount.failure(
                f"Unable to retrieve nodes in cluster {cluster_name} "
                f"in region {region_name} ({str(e)})",
                resource=resource,
                region=region_name,
            )
        finally:
            kubernetes.close()
