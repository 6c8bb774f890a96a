# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Abstract services hiding the boto3 API from the counting logic.

Each service wraps one boto3 client and exposes only the list and describe
operations the counters need. Paginated operations return lazy Page
iterators (see pagination.py). Every provider failure is re-raised as
AWSAPIError, so counters only ever catch one exception type.

No caching and no retries happen here; retries are botocore's concern and
are configured on the client.
"""

import logging
from typing import Any, Callable, Iterator, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from ..models.cluster import ClusterInfo, NodeGroupInfo
from .pagination import Page, boto_pages

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Instance states that still represent an existing instance
LIVE_INSTANCE_STATES = ["pending", "running", "shutting-down", "stopping", "stopped"]


class AWSAPIError(Exception):
    """Raised when AWS API calls fail."""
    pass


def _call(description: str, func: Callable[..., R], **kwargs: Any) -> R:
    """Invoke a single boto3 call, wrapping provider errors."""
    try:
        return func(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise AWSAPIError(f"{description} failed: {str(e)}") from e


def _guarded_pages(description: str, pages: Iterator[Page]) -> Iterator[Page]:
    """Re-raise provider errors hit while paging as AWSAPIError."""
    try:
        yield from pages
    except (ClientError, BotoCoreError) as e:
        raise AWSAPIError(f"{description} failed: {str(e)}") from e


def _paginate(
    client: Any,
    operation_name: str,
    items_of: str | Callable[[dict], list],
    next_token_key: str,
    **kwargs: Any,
) -> Iterator[Page]:
    return _guarded_pages(
        operation_name,
        boto_pages(client, operation_name, items_of, next_token_key, **kwargs),
    )


def _reservation_instances(response: dict) -> list[dict]:
    """Flatten the instances of every reservation in a DescribeInstances page."""
    return [
        instance
        for reservation in response.get("Reservations", [])
        for instance in reservation.get("Instances", [])
    ]


class _ClientService:
    """Base for services holding one boto3 client."""

    def __init__(self, client: Any):
        self.client = client

    @property
    def region(self) -> str:
        """Region the underlying client is bound to."""
        return self.client.meta.region_name


class AccountIDService(_ClientService):
    """Looks up the account id through STS."""

    def account(self) -> str:
        response = _call("GetCallerIdentity", self.client.get_caller_identity)
        return response["Account"]


class EC2Service(_ClientService):
    """EC2 instances, EBS volumes and the account's region list."""

    def instance_pages(self, filters: list[dict] | None = None) -> Iterator[Page[dict]]:
        """
        Page through EC2 instances.

        Args:
            filters: Optional EC2 filters (e.g. instance-lifecycle=spot)

        Returns:
            Lazy iterator of instance pages
        """
        kwargs = {"Filters": filters} if filters else {}
        return _paginate(
            self.client, "describe_instances", _reservation_instances, "NextToken", **kwargs
        )

    def volume_pages(self, filters: list[dict] | None = None) -> Iterator[Page[dict]]:
        kwargs = {"Filters": filters} if filters else {}
        return _paginate(self.client, "describe_volumes", "Volumes", "NextToken", **kwargs)

    def get_regions(
        self,
        filters: list[dict] | None = None,
        all_regions: bool = False,
    ) -> list[dict]:
        """
        Describe the regions visible to the account.

        Args:
            filters: Optional DescribeRegions filters (e.g. opt-in-status)
            all_regions: Include regions the account has not opted into

        Returns:
            Region descriptors as returned by EC2, in provider order
        """
        kwargs: dict[str, Any] = {}
        if filters:
            kwargs["Filters"] = filters
        if all_regions:
            kwargs["AllRegions"] = True
        response = _call("DescribeRegions", self.client.describe_regions, **kwargs)
        return response.get("Regions", [])


class RDSService(_ClientService):
    """RDS database instances."""

    def instance_pages(self) -> Iterator[Page[dict]]:
        return _paginate(self.client, "describe_db_instances", "DBInstances", "Marker")


class S3Service(_ClientService):
    """S3 buckets. Bucket listing is global to the account."""

    def bucket_pages(self) -> Iterator[Page[dict]]:
        return _paginate(self.client, "list_buckets", "Buckets", "ContinuationToken")


class LambdaService(_ClientService):
    """Lambda functions."""

    def function_pages(self) -> Iterator[Page[dict]]:
        return _paginate(self.client, "list_functions", "Functions", "NextMarker")


class ContainerService(_ClientService):
    """ECS task definitions."""

    def task_definition_pages(self) -> Iterator[Page[str]]:
        return _paginate(
            self.client, "list_task_definitions", "taskDefinitionArns", "nextToken"
        )


class LightsailService(_ClientService):
    """Lightsail instances and the Lightsail region list."""

    def instance_pages(self) -> Iterator[Page[dict]]:
        return _paginate(self.client, "get_instances", "instances", "nextPageToken")

    def get_regions(self) -> list[dict]:
        response = _call("GetRegions", self.client.get_regions)
        return response.get("regions", [])


class IAMService(_ClientService):
    """IAM users. IAM is global to the account."""

    def user_pages(self) -> Iterator[Page[dict]]:
        return _paginate(self.client, "list_users", "Users", "Marker")


class EKSService(_ClientService):
    """EKS clusters and their managed node groups."""

    def cluster_pages(self) -> Iterator[Page[str]]:
        """Page through the names of the clusters in this region."""
        return _paginate(self.client, "list_clusters", "clusters", "nextToken")

    def nodegroup_pages(self, cluster_name: str) -> Iterator[Page[str]]:
        """Page through the names of a cluster's managed node groups."""
        return _paginate(
            self.client, "list_nodegroups", "nodegroups", "nextToken",
            clusterName=cluster_name,
        )

    def describe_cluster(self, cluster_name: str) -> ClusterInfo:
        """
        Describe a cluster.

        Args:
            cluster_name: Name of the cluster

        Returns:
            ClusterInfo with the API endpoint and CA data when available

        Raises:
            AWSAPIError: If DescribeCluster fails
        """
        response = _call("DescribeCluster", self.client.describe_cluster, name=cluster_name)
        cluster = response.get("cluster", {})
        return ClusterInfo(
            name=cluster.get("name", cluster_name),
            region=self.region,
            endpoint=cluster.get("endpoint"),
            certificate_authority=cluster.get("certificateAuthority", {}).get("data"),
            status=cluster.get("status"),
        )

    def describe_nodegroup(self, cluster_name: str, nodegroup_name: str) -> NodeGroupInfo:
        """
        Describe a managed node group.

        Args:
            cluster_name: Owning cluster
            nodegroup_name: Node group name

        Returns:
            NodeGroupInfo carrying the scaling configuration's desired size
            (0 when the group reports no scaling configuration)

        Raises:
            AWSAPIError: If DescribeNodegroup fails
        """
        response = _call(
            "DescribeNodegroup",
            self.client.describe_nodegroup,
            clusterName=cluster_name,
            nodegroupName=nodegroup_name,
        )
        scaling = response.get("nodegroup", {}).get("scalingConfig") or {}
        return NodeGroupInfo(
            cluster_name=cluster_name,
            name=nodegroup_name,
            desired_size=scaling.get("desiredSize") or 0,
        )
