# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Live node listing against an EKS cluster's Kubernetes API.

Used only when nodes are counted from the control plane rather than from
node group scaling configuration. Authentication follows the EKS bearer
token scheme: a presigned STS GetCallerIdentity URL carrying the
x-k8s-aws-id header, base64url encoded and prefixed with "k8s-aws-v1.".
"""

import base64
import logging
import os
import tempfile
from typing import Any, Iterator

from botocore.exceptions import BotoCoreError, ClientError
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ..models.cluster import ClusterInfo
from .pagination import Page, token_pages
from .services import AWSAPIError

logger = logging.getLogger(__name__)

EKS_TOKEN_PREFIX = "k8s-aws-v1."
CLUSTER_ID_HEADER = "x-k8s-aws-id"
# Presigned URLs for EKS tokens are valid for 60 seconds
TOKEN_EXPIRATION_SECONDS = 60
DEFAULT_NODE_PAGE_SIZE = 500


def _retrieve_cluster_name(params: dict, context: dict, **kwargs: Any) -> None:
    if "ClusterName" in params:
        context["eks_cluster"] = params.pop("ClusterName")


def _inject_cluster_header(request: Any, **kwargs: Any) -> None:
    if "eks_cluster" in request.context:
        request.headers[CLUSTER_ID_HEADER] = request.context["eks_cluster"]


def generate_eks_token(sts_client: Any, cluster_name: str) -> str:
    """
    Build a bearer token for an EKS cluster's Kubernetes API.

    Args:
        sts_client: boto3 STS client, ideally bound to the cluster's region
        cluster_name: Name of the cluster the token is scoped to

    Returns:
        Token string accepted by the EKS authenticator

    Raises:
        AWSAPIError: If the URL cannot be presigned (e.g. no credentials)
    """
    events = sts_client.meta.events
    service_id = sts_client.meta.service_model.service_id.hyphenize()
    events.register(
        f"provide-client-params.{service_id}.GetCallerIdentity",
        _retrieve_cluster_name,
        unique_id="eks-token-cluster-name",
    )
    events.register(
        f"before-sign.{service_id}.GetCallerIdentity",
        _inject_cluster_header,
        unique_id="eks-token-cluster-header",
    )
    try:
        url = sts_client.generate_presigned_url(
            "get_caller_identity",
            Params={"ClusterName": cluster_name},
            ExpiresIn=TOKEN_EXPIRATION_SECONDS,
            HttpMethod="GET",
        )
    except (ClientError, BotoCoreError) as e:
        raise AWSAPIError(f"Unable to create an EKS token for {cluster_name}: {str(e)}") from e

    encoded = base64.urlsafe_b64encode(url.encode("utf-8")).decode("utf-8")
    return EKS_TOKEN_PREFIX + encoded.rstrip("=")


class KubernetesService:
    """Lists the nodes registered with one cluster's control plane."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        cluster_name: str,
        page_size: int = DEFAULT_NODE_PAGE_SIZE,
        ca_cert_path: str | None = None,
    ):
        self.core_api = core_api
        self.cluster_name = cluster_name
        self.page_size = page_size
        self._ca_cert_path = ca_cert_path

    def node_pages(self) -> Iterator[Page[Any]]:
        """
        Page through the cluster's nodes using limit/continue.

        Returns:
            Lazy iterator of node pages

        Raises:
            AWSAPIError: While iterating, if the API server rejects or fails a request
        """

        def fetch(token: str | None) -> tuple[list[Any], str | None]:
            kwargs: dict[str, Any] = {"limit": self.page_size}
            if token:
                kwargs["_continue"] = token
            try:
                response = self.core_api.list_node(**kwargs)
            except (ApiException, HTTPError) as e:
                raise AWSAPIError(
                    f"Unable to list nodes for cluster {self.cluster_name}: {str(e)}"
                ) from e
            return response.items or [], response.metadata._continue

        return token_pages(fetch)

    def close(self) -> None:
        """Release the API client and the temporary CA bundle."""
        self.core_api.api_client.close()
        if self._ca_cert_path and os.path.exists(self._ca_cert_path):
            os.remove(self._ca_cert_path)
            self._ca_cert_path = None


def build_kubernetes_service(
    cluster: ClusterInfo,
    token: str,
    page_size: int = DEFAULT_NODE_PAGE_SIZE,
) -> KubernetesService:
    """
    Create a Kubernetes client scoped to one EKS cluster.

    Args:
        cluster: Cluster description with endpoint and CA data
        token: EKS bearer token from generate_eks_token()
        page_size: Nodes requested per page

    Returns:
        KubernetesService for the cluster

    Raises:
        AWSAPIError: If the cluster exposes no API endpoint or bad CA data
    """
    if not cluster.endpoint:
        raise AWSAPIError(f"Cluster {cluster.name} has no API server endpoint")

    configuration = client.Configuration()
    configuration.host = cluster.endpoint
    configuration.api_key = {"authorization": token}
    configuration.api_key_prefix = {"authorization": "Bearer"}

    ca_cert_path = None
    if cluster.certificate_authority:
        try:
            ca_data = base64.b64decode(cluster.certificate_authority)
        except ValueError as e:
            raise AWSAPIError(f"Cluster {cluster.name} has invalid CA data: {str(e)}") from e
        with tempfile.NamedTemporaryFile(suffix=".crt", delete=False) as ca_file:
            ca_file.write(ca_data)
            ca_cert_path = ca_file.name
        configuration.ssl_ca_cert = ca_cert_path

    logger.debug(f"Created Kubernetes client for cluster {cluster.name} at {cluster.endpoint}")
    return KubernetesService(
        core_api=client.CoreV1Api(client.ApiClient(configuration)),
        cluster_name=cluster.name,
        page_size=page_size,
        ca_cert_path=ca_cert_path,
    )
