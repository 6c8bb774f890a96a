"""Top-level driver running every counter and assembling the report."""

import logging

from ..clients.service_factory import ServiceFactory
from ..clients.services import AWSAPIError
from ..models.counts import ErrorRecord, ResourceCount
from ..models.enums import NodeCountMode, RegionScope
from ..models.report import InventoryReport
from .activity_monitor import ActivityMonitor
from .eks_node_counter import FAMILY as EKS_NODES_FAMILY
from .eks_node_counter import EKSNodeCounter
from .flat_counters import FLAT_COUNTERS, FlatCounter
from .region_discovery_service import RegionDiscoveryService

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Counts every supported resource family for one account.

    Regions are resolved once per run and shared by all counters. Each
    family's count is independent: a family whose listing fails still
    appears in the report with its partial total and errors.
    """

    def __init__(
        self,
        factory: ServiceFactory,
        monitor: ActivityMonitor,
        node_count_mode: NodeCountMode = NodeCountMode.DESIRED,
        max_concurrent_regions: int = 1,
        counters: tuple[FlatCounter, ...] = FLAT_COUNTERS,
    ):
        """
        Initialize with dependencies and configuration.

        Args:
            factory: Service factory bound to the account's session
            monitor: Activity monitor for progress and errors
            node_count_mode: How EKS nodes are counted
            max_concurrent_regions: Regions counted at the same time
            counters: Flat counters to run (all supported families by default)
        """
        self.factory = factory
        self.monitor = monitor
        self.node_count_mode = NodeCountMode(node_count_mode)
        self.max_concurrent_regions = max_concurrent_regions
        self.counters = counters
        self.region_discovery = RegionDiscoveryService(factory, monitor)

    def get_account_id(self, errors: list[ErrorRecord] | None = None) -> str:
        """
        Look up the account id.

        Args:
            errors: If given, a failed lookup is also appended here

        Returns:
            The account id, or "" if the lookup failed (reported to the monitor)
        """
        self.monitor.start_action("Retrieving Account ID")
        try:
            account_id = self.factory.get_account_id_service().account()
        except AWSAPIError as e:
            self.monitor.check_error(e)
            if errors is not None:
                errors.append(
                    ErrorRecord(
                        message=f"Unable to retrieve account ID ({str(e)})",
                        resource="sts:account",
                    )
                )
            return ""
        self.monitor.end_action("OK (%s)", account_id)
        return account_id

    def run(self, all_regions: bool = False) -> InventoryReport:
        """
        Count every family and build the report.

        Args:
            all_regions: Count across every enabled region

        Returns:
            InventoryReport with one ResourceCount per family
        """
        logger.info(
            f"Starting inventory: all_regions={all_regions}, "
            f"node_count_mode={self.node_count_mode.value}, "
            f"max_concurrent_regions={self.max_concurrent_regions}"
        )

        run_errors: list[ErrorRecord] = []
        account_id = self.get_account_id(run_errors)
        regions = self.region_discovery.resolve_regions(all_regions)
        lightsail_regions: list[str] | None = None

        counts: dict[str, ResourceCount] = {}
        for counter in self.counters:
            counter_regions = regions
            if counter.scope == RegionScope.LIGHTSAIL:
                if lightsail_regions is None:
                    lightsail_regions = self.region_discovery.resolve_lightsail_regions(all_regions)
                counter_regions = lightsail_regions
            counts[counter.family] = counter.count(
                self.factory, self.monitor, counter_regions, self.max_concurrent_regions
            )

        eks_counter = EKSNodeCounter(
            self.factory,
            self.monitor,
            mode=self.node_count_mode,
            max_concurrent_regions=self.max_concurrent_regions,
        )
        counts[EKS_NODES_FAMILY] = eks_counter.count_regions(regions)
        run_errors.extend(self.region_discovery.drain_errors())

        report = InventoryReport(
            account_id=account_id,
            default_region=self.factory.get_current_region(),
            all_regions=all_regions and "" not in regions,
            regions=[region or self.factory.get_current_region() for region in regions],
            node_count_mode=self.node_count_mode,
            counts=counts,
            run_errors=run_errors,
        )

        logger.info(
            f"Inventory complete: account={account_id or 'unknown'}, "
            f"families={len(counts)}, errors={len(report.errors)}"
        )
        return report
