"""
Command-line entry point for the AWS Resource Counter.

Usage:
    aws-resource-counter                              # Default region only
    aws-resource-counter --all-regions                # Every enabled region
    aws-resource-counter --profile prod --region eu-west-1
    aws-resource-counter --node-count-mode live       # Count registered EKS nodes
    aws-resource-counter --output-file counts.csv --append
"""

import argparse
import logging
import sys
from typing import Optional

from . import __version__
from .clients.service_factory import AWSServiceFactory, ServiceFactoryError, build_boto_config
from .config import Settings, settings as get_default_settings
from .models.enums import NodeCountMode
from .services.activity_monitor import LoggingActivityMonitor
from .services.inventory_service import InventoryService
from .services.region_discovery_service import InvalidRegionError
from .utils.logging_config import configure_cloudwatch_logging, configure_logging, enable_trace
from .utils.report_writer import render_json, write_csv_row

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aws-resource-counter",
        description="Count the resources owned by an AWS account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--profile", help="AWS profile to use")
    parser.add_argument("--region", help="Region to count (default: profile region)")
    parser.add_argument(
        "--all-regions",
        action="store_true",
        default=None,
        help="Count across every enabled region",
    )
    parser.add_argument(
        "--node-count-mode",
        choices=[mode.value for mode in NodeCountMode],
        help="EKS nodes from node group desired size or from each cluster's API",
    )
    parser.add_argument(
        "--max-concurrent-regions",
        type=int,
        help="Regions counted at the same time (default: 1)",
    )
    parser.add_argument("--output-file", help="Write one CSV row per run to this file")
    parser.add_argument(
        "--append",
        action="store_true",
        default=None,
        help="Append to the output file instead of replacing it",
    )
    parser.add_argument("--trace-file", help="Write a debug trace of every AWS call here")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_arguments(base: Settings, args: argparse.Namespace) -> Settings:
    """Override settings with the flags that were actually given."""
    overrides = {
        "aws_profile": args.profile,
        "aws_region": args.region,
        "all_regions": args.all_regions,
        "node_count_mode": NodeCountMode(args.node_count_mode) if args.node_count_mode else None,
        "max_concurrent_regions": args.max_concurrent_regions,
        "output_file": args.output_file,
        "append_output": args.append,
        "trace_file": args.trace_file,
        "log_level": args.log_level,
    }
    return base.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def run(config: Settings, validate_region: Optional[str] = None) -> int:
    """
    Count resources with the given settings and print the report.

    Args:
        config: Effective settings
        validate_region: Region named on the command line, checked against
            the regions AWS knows before counting

    Returns:
        EXIT_OK, EXIT_PARTIAL when some items could not be counted, or
        EXIT_FATAL when no counting was possible
    """
    configure_logging(config.log_level)
    if config.trace_file:
        enable_trace(config.trace_file)

    try:
        factory = AWSServiceFactory(
            profile_name=config.aws_profile,
            region_name=config.aws_region,
            boto_config=build_boto_config(
                max_attempts=config.boto_max_attempts,
                connect_timeout=config.boto_connect_timeout,
                read_timeout=config.boto_read_timeout,
            ),
            node_page_size=config.node_page_size,
        )
    except ServiceFactoryError as e:
        logger.error(str(e))
        return EXIT_FATAL

    if config.cloudwatch_enabled:
        configure_cloudwatch_logging(
            log_group=config.cloudwatch_log_group,
            log_stream=config.cloudwatch_log_stream,
            region=factory.get_current_region(),
        )

    monitor = LoggingActivityMonitor()
    inventory = InventoryService(
        factory,
        monitor,
        node_count_mode=config.node_count_mode,
        max_concurrent_regions=config.max_concurrent_regions,
    )

    if validate_region:
        try:
            inventory.region_discovery.validate_region(validate_region)
        except InvalidRegionError as e:
            logger.error(str(e))
            return EXIT_FATAL

    report = inventory.run(all_regions=config.all_regions)

    print(render_json(report))
    if config.output_file:
        write_csv_row(report, config.output_file, append=config.append_output)

    if not report.complete or monitor.error_occurred:
        return EXIT_PARTIAL
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    return run(apply_arguments(get_default_settings(), args), validate_region=args.region)


if __name__ == "__main__":
    sys.exit(main())
