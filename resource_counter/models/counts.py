"""Count and error data models.

Every traversal level (node group, cluster, region, family) produces its own
ResourceCount. Callers merge child counts instead of sharing a mutable error
list, so a failure anywhere only ever removes that item's contribution.
"""

from typing import Iterable

from pydantic import BaseModel, Field


class ErrorRecord(BaseModel):
    """A failure recorded while counting one item.

    Not an exception: it is relayed to the activity monitor and returned with
    the count. Never retried and never fatal to sibling items.
    """

    message: str = Field(..., description="Human-readable description of the failure")
    resource: str = Field(..., description="Resource family or item the failure concerns")
    region: str = Field(default="", description="AWS region the failure concerns")

    def __str__(self) -> str:
        return self.message


class ResourceCount(BaseModel):
    """A non-negative total plus the ordered errors accumulated while counting."""

    total: int = Field(default=0, ge=0, description="Number of resources counted")
    errors: list[ErrorRecord] = Field(
        default_factory=list,
        description="Errors in visitation order"
    )

    @classmethod
    def failure(cls, message: str, resource: str, region: str = "") -> "ResourceCount":
        """Build a zero count carrying a single error."""
        return cls(errors=[ErrorRecord(message=message, resource=resource, region=region)])

    @classmethod
    def combine(cls, counts: Iterable["ResourceCount"]) -> "ResourceCount":
        """Merge counts in iteration order."""
        result = cls()
        for count in counts:
            result = result.merge(count)
        return result

    def merge(self, other: "ResourceCount") -> "ResourceCount":
        """Return a new count with summed totals and concatenated errors."""
        return ResourceCount(
            total=self.total + other.total,
            errors=[*self.errors, *other.errors],
        )

    @property
    def error_messages(self) -> list[str]:
        return [error.message for error in self.errors]

    @property
    def succeeded(self) -> bool:
        return not self.errors
