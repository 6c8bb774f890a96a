"""Pytest configuration, shared fixtures and in-memory service fakes.

The fakes implement the same list/describe capabilities as the boto3-backed
services in resource_counter.clients, driven by canned page batches. A batch
that is None, or an Exception instance inside a batch list, makes the fake
raise AWSAPIError at that point of the iteration, like a real paginator.
"""

import threading
from typing import Any, Iterator

import pytest

from resource_counter.clients.pagination import Page
from resource_counter.clients.services import AWSAPIError
from resource_counter.models.cluster import ClusterInfo, NodeGroupInfo


# =============================================================================
# Page helpers
# =============================================================================

def iter_batches(batches: list | None, description: str = "list") -> Iterator[Page]:
    """Yield canned batches as Pages, raising where a batch is an exception."""
    if batches is None:
        raise AWSAPIError(f"{description} returned an unexpected error: 1234")
    for index, batch in enumerate(batches):
        if isinstance(batch, Exception):
            raise batch
        yield Page(items=list(batch), is_last=index == len(batches) - 1)


def lazy_pages(batches: list | None, description: str = "list") -> Iterator[Page]:
    """Wrap iter_batches so the failure only happens once iteration starts."""
    yield from iter_batches(batches, description)


# =============================================================================
# Fake services
# =============================================================================

class FakeEKSService:
    """
    In-memory EKSService.

    Args:
        cluster_pages: Batches of cluster names, None to fail the listing
        nodegroup_pages: Batches of node group names used for every cluster,
                         or a dict of per-cluster batches (None fails that cluster)
        desired_size: Desired size reported by every node group
        desired_sizes: Per "cluster/group" overrides of the desired size
        failing_nodegroups: "cluster/group" keys whose describe call fails
        failing_clusters: Cluster names whose describe call fails
        region: Region reported by the service
    """

    def __init__(
        self,
        cluster_pages: list | None = None,
        nodegroup_pages: list | dict | None = None,
        desired_size: int = 2,
        desired_sizes: dict[str, int] | None = None,
        failing_nodegroups: set[str] | None = None,
        failing_clusters: set[str] | None = None,
        region: str = "us-east-1",
    ):
        self.cluster_batches = cluster_pages
        self.nodegroup_batches = nodegroup_pages
        self.desired_size = desired_size
        self.desired_sizes = desired_sizes or {}
        self.failing_nodegroups = failing_nodegroups or set()
        self.failing_clusters = failing_clusters or set()
        self.region = region
        self.described_nodegroups: list[str] = []

    def cluster_pages(self) -> Iterator[Page[str]]:
        return lazy_pages(self.cluster_batches, "ListClusters")

    def nodegroup_pages(self, cluster_name: str) -> Iterator[Page[str]]:
        batches = self.nodegroup_batches
        if isinstance(batches, dict):
            batches = batches.get(cluster_name, [[]])
        return lazy_pages(batches, "ListNodegroups")

    def describe_nodegroup(self, cluster_name: str, nodegroup_name: str) -> NodeGroupInfo:
        key = f"{cluster_name}/{nodegroup_name}"
        self.described_nodegroups.append(key)
        if key in self.failing_nodegroups:
            raise AWSAPIError("DescribeNodegroup returned an unexpected error: 2345")
        return NodeGroupInfo(
            cluster_name=cluster_name,
            name=nodegroup_name,
            desired_size=self.desired_sizes.get(key, self.desired_size),
        )

    def describe_cluster(self, cluster_name: str) -> ClusterInfo:
        if cluster_name in self.failing_clusters:
            raise AWSAPIError("DescribeCluster returned an unexpected error: 3456")
        return ClusterInfo(
            name=cluster_name,
            region=self.region,
            endpoint=f"https://{cluster_name}.eks.example.com",
            certificate_authority=None,
        )


class FakeKubernetesService:
    """In-memory KubernetesService listing canned node batches."""

    def __init__(self, cluster_name: str, node_batches: list | None):
        self.cluster_name = cluster_name
        self.node_batches = node_batches
        self.closed = False

    def node_pages(self) -> Iterator[Page[Any]]:
        return lazy_pages(self.node_batches, "ListNodes")

    def close(self) -> None:
        self.closed = True


class FakeFlatService:
    """
    Stands in for every flat-list service (EC2, RDS, S3, Lambda, ECS,
    Lightsail, IAM) and for the account lookup.

    Every *_pages method returns the same canned batches.
    """

    def __init__(
        self,
        batches: list | None,
        regions: list[dict] | None = None,
        account_id: str | None = "123456789012",
        region: str = "us-east-1",
    ):
        self.batches = batches
        self.regions = regions
        self.account_id = account_id
        self.region = region
        self.calls: list[tuple[str, Any]] = []

    def _pages(self, name: str, filters: Any = None) -> Iterator[Page]:
        self.calls.append((name, filters))
        return lazy_pages(self.batches, name)

    def instance_pages(self, filters: list[dict] | None = None) -> Iterator[Page]:
        return self._pages("instance_pages", filters)

    def volume_pages(self, filters: list[dict] | None = None) -> Iterator[Page]:
        return self._pages("volume_pages", filters)

    def function_pages(self) -> Iterator[Page]:
        return self._pages("function_pages")

    def task_definition_pages(self) -> Iterator[Page]:
        return self._pages("task_definition_pages")

    def bucket_pages(self) -> Iterator[Page]:
        return self._pages("bucket_pages")

    def user_pages(self) -> Iterator[Page]:
        return self._pages("user_pages")

    def get_regions(self, filters: list[dict] | None = None, all_regions: bool = False) -> list[dict]:
        self.calls.append(("get_regions", filters))
        if self.regions is None:
            raise AWSAPIError("DescribeRegions returned an unexpected error: 4567")
        return self.regions

    def account(self) -> str:
        if self.account_id is None:
            raise AWSAPIError("GetCallerIdentity returned an unexpected error: 5678")
        return self.account_id


class FakeServiceFactory:
    """
    In-memory ServiceFactory.

    Args:
        current_region: Region "" resolves to
        eks: One FakeEKSService for every region, or a dict keyed by region
        flat_batches: Batches for every flat service, or a dict keyed by region
        regions: EC2 region descriptors, None to fail region discovery
        lightsail_regions: Lightsail region descriptors, None to fail
        nodes: Per-cluster node batches for live counting. A cluster missing
               from the dict is unreachable (client construction fails).
        account_id: Account id, None to fail the lookup
    """

    def __init__(
        self,
        current_region: str = "us-east-1",
        eks: FakeEKSService | dict[str, FakeEKSService] | None = None,
        flat_batches: list | dict | None = None,
        regions: list[dict] | None = None,
        lightsail_regions: list[dict] | None = None,
        nodes: dict[str, list | None] | None = None,
        account_id: str | None = "123456789012",
    ):
        self.current_region = current_region
        self.eks = eks if eks is not None else FakeEKSService(cluster_pages=[[]])
        self.flat_batches = flat_batches if flat_batches is not None else [["item-1", "item-2"]]
        self.regions = regions
        self.lightsail_regions = lightsail_regions
        self.nodes = nodes or {}
        self.account_id = account_id
        self.eks_regions_requested: list[str] = []
        self.kubernetes_services: list[FakeKubernetesService] = []
        self._lock = threading.Lock()

    def get_current_region(self) -> str:
        return self.current_region

    def _flat(self, region: str, regions: list[dict] | None = None) -> FakeFlatService:
        resolved = region or self.current_region
        batches = self.flat_batches
        if isinstance(batches, dict):
            batches = batches.get(resolved, [])
        return FakeFlatService(batches, regions=regions, account_id=self.account_id, region=resolved)

    def get_account_id_service(self) -> FakeFlatService:
        return self._flat("")

    def get_ec2_service(self, region: str = "") -> FakeFlatService:
        return self._flat(region, regions=self.regions)

    def get_rds_service(self, region: str = "") -> FakeFlatService:
        return self._flat(region)

    def get_s3_service(self) -> FakeFlatService:
        return self._flat("")

    def get_lambda_service(self, region: str = "") -> FakeFlatService:
        return self._flat(region)

    def get_container_service(self, region: str = "") -> FakeFlatService:
        return self._flat(region)

    def get_lightsail_service(self, region: str = "") -> "FakeLightsailService":
        return FakeLightsailService(self._flat(region), self.lightsail_regions)

    def get_iam_service(self) -> FakeFlatService:
        return self._flat("")

    def get_eks_service(self, region: str = "") -> FakeEKSService:
        with self._lock:
            self.eks_regions_requested.append(region)
        if isinstance(self.eks, dict):
            return self.eks[region or self.current_region]
        return self.eks

    def get_kubernetes_service(self, cluster: ClusterInfo, region: str = "") -> FakeKubernetesService:
        if cluster.name not in self.nodes:
            raise AWSAPIError(f"Unable to reach the API server of {cluster.name}")
        service = FakeKubernetesService(cluster.name, self.nodes[cluster.name])
        with self._lock:
            self.kubernetes_services.append(service)
        return service


class FakeLightsailService:
    """Lightsail fake: flat instance pages plus its own region list."""

    def __init__(self, flat: FakeFlatService, regions: list[dict] | None):
        self._flat = flat
        self.regions = regions

    def instance_pages(self) -> Iterator[Page]:
        return self._flat.instance_pages()

    def get_regions(self) -> list[dict]:
        if self.regions is None:
            raise AWSAPIError("GetRegions returned an unexpected error: 6789")
        return self.regions


class RecordingActivityMonitor:
    """ActivityMonitor recording every notification for assertions."""

    def __init__(self):
        self.actions: list[str] = []
        self.results: list[str] = []
        self.messages: list[str] = []
        self.sub_resource_errors: list[str] = []
        self.checked_errors: list[str] = []
        self._lock = threading.Lock()

    @property
    def error_occurred(self) -> bool:
        return bool(self.sub_resource_errors or self.checked_errors)

    def start_action(self, label: str, *args: Any) -> None:
        self.actions.append(label % args if args else label)

    def end_action(self, fmt: str, *args: Any) -> None:
        self.results.append(fmt % args if args else fmt)

    def message(self, fmt: str, *args: Any) -> None:
        with self._lock:
            self.messages.append(fmt % args if args else fmt)

    def sub_resource_error(self, message: str) -> None:
        self.sub_resource_errors.append(message)

    def check_error(self, err: Exception | None) -> bool:
        if err is None:
            return False
        self.checked_errors.append(str(err))
        return True


# =============================================================================
# Fixtures
# =============================================================================

THREE_CLUSTERS = [["cluster1", "cluster2", "cluster3"]]
TWO_NODEGROUPS = [["nodegroup-1", "nodegroup-2"]]


@pytest.fixture
def monitor():
    """Recording activity monitor."""
    return RecordingActivityMonitor()


@pytest.fixture
def make_eks():
    """Builder for FakeEKSService instances."""
    return FakeEKSService


@pytest.fixture
def make_factory():
    """Builder for FakeServiceFactory instances."""
    return FakeServiceFactory


@pytest.fixture
def make_pages():
    """Turn canned batches into a lazy Page iterator."""
    return lazy_pages


@pytest.fixture
def eks_service():
    """Three clusters, each with two node groups of desired size 2."""
    return FakeEKSService(cluster_pages=THREE_CLUSTERS, nodegroup_pages=TWO_NODEGROUPS)


@pytest.fixture
def factory(eks_service):
    """Fake factory serving the three-cluster EKS service."""
    return FakeServiceFactory(eks=eks_service)


@pytest.fixture
def aws_credentials(monkeypatch, tmp_path):
    """Mocked AWS credentials and an isolated AWS config for moto and boto3."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)
