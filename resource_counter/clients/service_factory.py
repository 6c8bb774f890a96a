"""Factory producing region-bound services over a single boto3 session."""

import logging
import threading
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ProfileNotFound

from ..models.cluster import ClusterInfo
from .kubernetes_service import (
    DEFAULT_NODE_PAGE_SIZE,
    KubernetesService,
    build_kubernetes_service,
    generate_eks_token,
)
from .services import (
    AccountIDService,
    ContainerService,
    EC2Service,
    EKSService,
    IAMService,
    LambdaService,
    LightsailService,
    RDSService,
    S3Service,
)

logger = logging.getLogger(__name__)

# Used when neither the caller nor the profile supplies a region
DEFAULT_REGION = "us-east-1"


class ServiceFactoryError(Exception):
    """Raised when no usable session can be built. Fatal to the whole run."""
    pass


class ServiceFactory(Protocol):
    """
    Produces the abstract services, each bound to a region.

    An empty region string means the factory's default region. Every call
    returns an independent service handle.
    """

    def get_current_region(self) -> str: ...

    def get_account_id_service(self) -> AccountIDService: ...

    def get_ec2_service(self, region: str = "") -> EC2Service: ...

    def get_rds_service(self, region: str = "") -> RDSService: ...

    def get_s3_service(self) -> S3Service: ...

    def get_lambda_service(self, region: str = "") -> LambdaService: ...

    def get_container_service(self, region: str = "") -> ContainerService: ...

    def get_lightsail_service(self, region: str = "") -> LightsailService: ...

    def get_iam_service(self) -> IAMService: ...

    def get_eks_service(self, region: str = "") -> EKSService: ...

    def get_kubernetes_service(self, cluster: ClusterInfo, region: str = "") -> KubernetesService: ...


def build_boto_config(
    max_attempts: int = 3,
    connect_timeout: int = 10,
    read_timeout: int = 30,
) -> Config:
    """Client configuration shared by every service the factory creates."""
    return Config(
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )


class AWSServiceFactory:
    """
    boto3-backed ServiceFactory.

    Holds one boto3 Session and caches the underlying clients per
    (service, region) pair. Client creation is serialized with a lock since
    boto3 sessions are not thread-safe, which lets the region fan-out share
    one factory across worker threads.
    """

    def __init__(
        self,
        profile_name: str | None = None,
        region_name: str | None = None,
        boto_config: Config | None = None,
        session: boto3.Session | None = None,
        node_page_size: int = DEFAULT_NODE_PAGE_SIZE,
    ):
        """
        Build the session and resolve the default region.

        Args:
            profile_name: Shared config/credentials profile (SSO profiles work too).
                          If None, the standard credential chain is used.
            region_name: Region override. If None, the profile or environment
                         region is used, then DEFAULT_REGION.
            boto_config: botocore Config applied to every client
            session: Pre-built session (mainly for tests)
            node_page_size: Nodes requested per page in live node listing

        Raises:
            ServiceFactoryError: If the profile does not exist or no
                                 credentials can be resolved
        """
        try:
            self._session = session or boto3.Session(
                profile_name=profile_name or None,
                region_name=region_name or None,
            )
            credentials = self._session.get_credentials()
        except ProfileNotFound as e:
            raise ServiceFactoryError(f"AWS profile not found: {str(e)}") from e
        except BotoCoreError as e:
            raise ServiceFactoryError(f"Unable to resolve AWS credentials: {str(e)}") from e

        if credentials is None:
            raise ServiceFactoryError(
                "Unable to resolve AWS credentials from the profile or environment"
            )

        self._region = region_name or self._session.region_name or DEFAULT_REGION
        self._boto_config = boto_config
        self._node_page_size = node_page_size
        self._clients: dict[tuple[str, str, str], Any] = {}
        self._lock = threading.Lock()

        logger.debug(
            f"AWSServiceFactory initialized: profile={profile_name or 'default'}, "
            f"region={self._region}"
        )

    @property
    def session(self) -> boto3.Session:
        return self._session

    @property
    def boto_config(self) -> Config | None:
        return self._boto_config

    def get_current_region(self) -> str:
        """The resolved default region."""
        return self._region

    def get_client_count(self) -> int:
        """Number of boto3 clients created so far."""
        return len(self._clients)

    def _client(self, service_name: str, region: str = "", **kwargs: Any) -> Any:
        """
        Get or create a boto3 client for a service and region.

        Args:
            service_name: boto3 service name (e.g. "eks")
            region: Region to bind to; empty means the default region
            **kwargs: Extra client arguments (e.g. endpoint_url)

        Returns:
            Cached boto3 client
        """
        region = region or self._region
        key = (service_name, region, kwargs.get("endpoint_url", ""))
        with self._lock:
            if key not in self._clients:
                logger.debug(f"Creating {service_name} client for region {region}")
                self._clients[key] = self._session.client(
                    service_name,
                    region_name=region,
                    config=self._boto_config,
                    **kwargs,
                )
            return self._clients[key]

    def get_account_id_service(self) -> AccountIDService:
        return AccountIDService(self._client("sts"))

    def get_ec2_service(self, region: str = "") -> EC2Service:
        return EC2Service(self._client("ec2", region))

    def get_rds_service(self, region: str = "") -> RDSService:
        return RDSService(self._client("rds", region))

    def get_s3_service(self) -> S3Service:
        return S3Service(self._client("s3"))

    def get_lambda_service(self, region: str = "") -> LambdaService:
        return LambdaService(self._client("lambda", region))

    def get_container_service(self, region: str = "") -> ContainerService:
        return ContainerService(self._client("ecs", region))

    def get_lightsail_service(self, region: str = "") -> LightsailService:
        return LightsailService(self._client("lightsail", region))

    def get_iam_service(self) -> IAMService:
        return IAMService(self._client("iam"))

    def get_eks_service(self, region: str = "") -> EKSService:
        return EKSService(self._client("eks", region))

    def get_kubernetes_service(self, cluster: ClusterInfo, region: str = "") -> KubernetesService:
        """
        Build a live Kubernetes client for one cluster.

        The token is presigned with the regional STS endpoint of the cluster.

        Raises:
            AWSAPIError: If the token or the client cannot be created
        """
        region = region or cluster.region or self._region
        sts = self._client(
            "sts", region, endpoint_url=f"https://sts.{region}.amazonaws.com"
        )
        token = generate_eks_token(sts, cluster.name)
        return build_kubernetes_service(cluster, token, page_size=self._node_page_size)
