"""Inventory report model."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .counts import ErrorRecord, ResourceCount
from .enums import NodeCountMode


class InventoryReport(BaseModel):
    """Aggregated resource counts for one account.

    Counts are keyed by resource family (e.g. "ec2_instances", "eks_nodes").
    Every family carries a best-effort total even when some of its items
    failed; the failures are listed in the family's errors.
    """

    account_id: str = Field(default="", description="AWS account id (empty if unknown)")
    default_region: str = Field(..., description="Region the session is bound to")
    all_regions: bool = Field(default=False, description="Whether all enabled regions were scanned")
    regions: list[str] = Field(
        default_factory=list,
        description="Regions scanned for regional resource families"
    )
    node_count_mode: NodeCountMode = Field(
        default=NodeCountMode.DESIRED,
        description="How EKS nodes were counted"
    )
    counts: dict[str, ResourceCount] = Field(
        default_factory=dict,
        description="Per-family counts keyed by family name"
    )
    run_errors: list[ErrorRecord] = Field(
        default_factory=list,
        description="Failures outside any family, such as account or region lookup"
    )
    scan_timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the scan was performed"
    )

    def count_of(self, family: str) -> int:
        """Total for a family, 0 if the family was not counted."""
        count = self.counts.get(family)
        return count.total if count else 0

    @property
    def errors(self) -> list[ErrorRecord]:
        """Run-level errors followed by every family's errors, in counting order."""
        return [
            *self.run_errors,
            *(error for count in self.counts.values() for error in count.errors),
        ]

    @property
    def complete(self) -> bool:
        return not self.errors

    def as_row(self) -> dict[str, str | int]:
        """Flatten the report into a single CSV row."""
        row: dict[str, str | int] = {
            "account_id": self.account_id,
            "region": "all" if self.all_regions else self.default_region,
            "scan_timestamp": self.scan_timestamp.isoformat(),
        }
        for family, count in self.counts.items():
            row[family] = count.total
        row["errors"] = len(self.errors)
        return row
