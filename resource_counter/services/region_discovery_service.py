"""Region discovery for multi-region counting.

Asks EC2 which regions the account is opted into. A discovery failure never
aborts a run: it is reported as a sub-resource error and counting falls back
to the default region only.
"""

import logging

from ..clients.service_factory import ServiceFactory
from ..clients.services import AWSAPIError
from ..models.counts import ErrorRecord
from .activity_monitor import ActivityMonitor

logger = logging.getLogger(__name__)

# Valid opt-in statuses for enabled regions
VALID_OPT_IN_STATUSES = frozenset(["opt-in-not-required", "opted-in"])

OPT_IN_FILTERS = [
    {
        "Name": "opt-in-status",
        "Values": sorted(VALID_OPT_IN_STATUSES),
    }
]

# Region list meaning "the factory's default region"
DEFAULT_REGION_ONLY = [""]


class InvalidRegionError(Exception):
    """Raised when a user supplied region is not an AWS region."""
    pass


def filter_regions_by_opt_in_status(regions: list[dict[str, str]]) -> list[str]:
    """
    Extract enabled region names from region descriptors, keeping their order.

    Descriptors without an OptInStatus are kept, since the server-side
    filter has already been applied to them.

    Args:
        regions: Region descriptors with "RegionName" and optional "OptInStatus"

    Returns:
        Region names in provider order
    """
    enabled = []
    for region_info in regions:
        region_name = region_info.get("RegionName", "")
        opt_in_status = region_info.get("OptInStatus")
        if not region_name:
            continue
        if opt_in_status is None or opt_in_status in VALID_OPT_IN_STATUSES:
            enabled.append(region_name)
        else:
            logger.debug(f"Excluding region {region_name} with opt-in status: {opt_in_status}")
    return enabled


class RegionDiscoveryService:
    """Resolves the set of regions a counting run visits."""

    def __init__(self, factory: ServiceFactory, monitor: ActivityMonitor):
        self.factory = factory
        self.monitor = monitor
        self.errors: list[ErrorRecord] = []

    def _report(self, message: str, resource: str) -> None:
        self.errors.append(ErrorRecord(message=message, resource=resource))
        self.monitor.sub_resource_error(message)

    def drain_errors(self) -> list[ErrorRecord]:
        """Return the failures recorded so far and forget them."""
        errors, self.errors = self.errors, []
        return errors

    def list_enabled_regions(self) -> list[str]:
        """
        List the EC2 regions the account is opted into.

        Returns:
            Region names in provider order, or [] if the call failed (the
            failure is reported to the monitor)
        """
        try:
            regions = self.factory.get_ec2_service().get_regions(filters=OPT_IN_FILTERS)
        except AWSAPIError as e:
            logger.warning(f"Region discovery failed: {str(e)}")
            self._report(f"Unable to list enabled regions ({str(e)})", resource="ec2:region")
            return []

        enabled = filter_regions_by_opt_in_status(regions)
        logger.info(f"Discovered {len(enabled)} enabled regions")
        return enabled

    def list_lightsail_regions(self) -> list[str]:
        """
        List the regions Lightsail is available in.

        Returns:
            Region names, or [] if the call failed (reported to the monitor)
        """
        try:
            regions = self.factory.get_lightsail_service().get_regions()
        except AWSAPIError as e:
            logger.warning(f"Lightsail region discovery failed: {str(e)}")
            self._report(f"Unable to list Lightsail regions ({str(e)})", resource="lightsail:region")
            return []
        return [region["name"] for region in regions if region.get("name")]

    def resolve_regions(self, all_regions: bool) -> list[str]:
        """
        Region set for a run.

        Args:
            all_regions: Visit every enabled region instead of the default one

        Returns:
            [""] (the default region) unless all_regions is set and discovery
            returned at least one region
        """
        if not all_regions:
            return list(DEFAULT_REGION_ONLY)
        regions = self.list_enabled_regions()
        if not regions:
            logger.warning(
                f"Falling back to default region: {self.factory.get_current_region()}"
            )
            return list(DEFAULT_REGION_ONLY)
        return regions

    def resolve_lightsail_regions(self, all_regions: bool) -> list[str]:
        """Same as resolve_regions() but over Lightsail's own region list."""
        if not all_regions:
            return list(DEFAULT_REGION_ONLY)
        return self.list_lightsail_regions() or list(DEFAULT_REGION_ONLY)

    def is_valid_region_name(self, region_name: str) -> bool:
        """
        Check a region name against every region AWS knows about.

        Raises:
            AWSAPIError: If the region list cannot be retrieved
        """
        regions = self.factory.get_ec2_service().get_regions(all_regions=True)
        return any(region.get("RegionName") == region_name for region in regions)

    def validate_region(self, region_name: str) -> None:
        """
        Raise InvalidRegionError if region_name is not a known region.

        If the region list cannot be retrieved the region is accepted and
        the failure is reported like any other discovery failure.

        Raises:
            InvalidRegionError: If the region is unknown
        """
        try:
            valid = self.is_valid_region_name(region_name)
        except AWSAPIError as e:
            logger.warning(f"Region validation failed: {str(e)}")
            self._report(
                f"Unable to validate region {region_name} ({str(e)})", resource="ec2:region"
            )
            return
        if not valid:
            raise InvalidRegionError(f"Invalid region name: {region_name}")
