"""EKS cluster and node group models."""

from pydantic import BaseModel, Field


class ClusterInfo(BaseModel):
    """The parts of an EKS cluster description the node counters need."""

    name: str = Field(..., description="Cluster name, unique within a region")
    region: str = Field(default="", description="Region the cluster lives in")
    endpoint: str | None = Field(
        default=None,
        description="Kubernetes API server endpoint (live node counting only)"
    )
    certificate_authority: str | None = Field(
        default=None,
        description="Base64 encoded cluster CA certificate (live node counting only)"
    )
    status: str | None = Field(default=None, description="Cluster status, e.g. ACTIVE")


class NodeGroupInfo(BaseModel):
    """A managed node group and its configured capacity."""

    cluster_name: str = Field(..., description="Owning cluster")
    name: str = Field(..., description="Node group name")
    desired_size: int = Field(
        default=0,
        ge=0,
        description="Autoscaling target capacity from the scaling configuration"
    )
