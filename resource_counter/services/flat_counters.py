"""Counters for resource families that are a single paginated list.

Each counter opens one list call per region, sums the page sizes and records
at most one error per region: a flat list has no nested failure domain.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator

from ..clients.pagination import Page, walk_pages
from ..clients.service_factory import ServiceFactory
from ..clients.services import LIVE_INSTANCE_STATES, AWSAPIError
from ..models.counts import ResourceCount
from ..models.enums import RegionScope
from .activity_monitor import ActivityMonitor
from .region_fan_out import fan_out_regions

logger = logging.getLogger(__name__)

PageSource = Callable[[ServiceFactory, str], Iterator[Page]]

EC2_INSTANCE_FILTERS = [
    {"Name": "instance-state-name", "Values": LIVE_INSTANCE_STATES},
]

EC2_SPOT_INSTANCE_FILTERS = [
    {"Name": "instance-lifecycle", "Values": ["spot"]},
    {"Name": "instance-state-name", "Values": LIVE_INSTANCE_STATES},
]


@dataclass(frozen=True)
class FlatCounter:
    """
    A resource family counted by summing the items of one paginated list.

    Attributes:
        family: Key of the family in the inventory report
        label: Human-readable name used in progress and error messages
        pages: Opens the family's page iterator for a region
        scope: Which region list the counter iterates over
    """

    family: str
    label: str
    pages: PageSource
    scope: RegionScope = RegionScope.REGIONAL

    def count(
        self,
        factory: ServiceFactory,
        monitor: ActivityMonitor,
        regions: list[str],
        max_concurrent: int = 1,
    ) -> ResourceCount:
        """
        Count the family across regions.

        Global families ignore regions and are counted once.

        Args:
            factory: Service factory
            monitor: Activity monitor
            regions: Regions to visit ("" is the default region)
            max_concurrent: Regions counted at the same time

        Returns:
            Summed count with one error per failed region
        """
        monitor.start_action(f"Retrieving {self.label} counts")

        if self.scope == RegionScope.GLOBAL:
            regions = [""]

        def count_region(region: str) -> ResourceCount:
            monitor.message(".")
            return self.count_region(factory, region)

        result = ResourceCount.combine(fan_out_regions(regions, count_region, max_concurrent))

        monitor.end_action("OK (%d)", result.total)
        for error in result.errors:
            monitor.sub_resource_error(error.message)
        return result

    def count_region(self, factory: ServiceFactory, region: str) -> ResourceCount:
        """Count one region. Items on pages read before a failure still count."""
        total = 0

        def tally(page: Page, is_last_page: bool) -> bool:
            nonlocal total
            total += len(page.items)
            return True

        try:
            walk_pages(self.pages(factory, region), tally)
        except AWSAPIError as e:
            region_name = self._region_name(factory, region)
            logger.warning(f"Listing {self.label} failed in {region_name}: {str(e)}")
            return ResourceCount(total=total).merge(
                ResourceCount.failure(
                    f"Unable to list {self.label} in region {region_name} ({str(e)})",
                    resource=self.family,
                    region=region_name,
                )
            )
        return ResourceCount(total=total)

    def _region_name(self, factory: ServiceFactory, region: str) -> str:
        if self.scope == RegionScope.GLOBAL:
            return "global"
        return region or factory.get_current_region()


FLAT_COUNTERS: tuple[FlatCounter, ...] = (
    FlatCounter(
        family="ec2_instances",
        label="EC2 instances",
        pages=lambda f, region: f.get_ec2_service(region).instance_pages(EC2_INSTANCE_FILTERS),
    ),
    FlatCounter(
        family="ec2_spot_instances",
        label="EC2 spot instances",
        pages=lambda f, region: f.get_ec2_service(region).instance_pages(EC2_SPOT_INSTANCE_FILTERS),
    ),
    FlatCounter(
        family="ebs_volumes",
        label="EBS volumes",
        pages=lambda f, region: f.get_ec2_service(region).volume_pages(),
    ),
    FlatCounter(
        family="rds_instances",
        label="RDS instances",
        pages=lambda f, region: f.get_rds_service(region).instance_pages(),
    ),
    FlatCounter(
        family="lambda_functions",
        label="Lambda functions",
        pages=lambda f, region: f.get_lambda_service(region).function_pages(),
    ),
    FlatCounter(
        family="ecs_task_definitions",
        label="ECS task definitions",
        pages=lambda f, region: f.get_container_service(region).task_definition_pages(),
    ),
    FlatCounter(
        family="lightsail_instances",
        label="Lightsail instances",
        pages=lambda f, region: f.get_lightsail_service(region).instance_pages(),
        scope=RegionScope.LIGHTSAIL,
    ),
    FlatCounter(
        family="s3_buckets",
        label="S3 buckets",
        pages=lambda f, region: f.get_s3_service().bucket_pages(),
        scope=RegionScope.GLOBAL,
    ),
    FlatCounter(
        family="iam_users",
        label="IAM users",
        pages=lambda f, region: f.get_iam_service().user_pages(),
        scope=RegionScope.GLOBAL,
    ),
)


def get_flat_counter(family: str) -> FlatCounter:
    """Look up a flat counter by family name."""
    for counter in FLAT_COUNTERS:
        if counter.family == family:
            return counter
    raise KeyError(f"Unknown resource family: {family}")
