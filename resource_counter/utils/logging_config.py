"""Logging configuration: console, botocore trace file and CloudWatch Logs."""

import logging
import sys
from datetime import UTC, datetime
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers that emit one record per AWS request when tracing
TRACE_LOGGERS = ("botocore", "boto3", "urllib3")


class CloudWatchHandler(logging.Handler):
    """Logging handler that sends records to AWS CloudWatch Logs."""

    def __init__(
        self,
        log_group: str,
        log_stream: str,
        region: str = "us-east-1",
    ):
        """
        Initialize CloudWatch logging handler.

        Args:
            log_group: CloudWatch log group name
            log_stream: CloudWatch log stream name
            region: AWS region for CloudWatch
        """
        super().__init__()
        self.log_group = log_group
        self.log_stream = log_stream
        self.region = region
        self.client = boto3.client("logs", region_name=region)
        self._ensure_log_group_and_stream()

    def _ensure_log_group_and_stream(self) -> None:
        """Create log group and stream if they don't exist."""
        try:
            self.client.create_log_group(logGroupName=self.log_group)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                raise

        try:
            self.client.create_log_stream(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                raise

    def emit(self, record: logging.LogRecord) -> None:
        """
        Emit a log record to CloudWatch.

        Args:
            record: The log record to emit
        """
        try:
            self.client.put_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                logEvents=[
                    {
                        "message": self.format(record),
                        "timestamp": int(record.created * 1000),
                    }
                ],
            )
        except (ClientError, BotoCoreError):
            # Logging must never break a counting run
            self.handleError(record)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure console logging on stderr.

    stdout is left to the report itself.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
        force=True,
    )

    # Keep AWS SDK chatter out of normal runs
    for name in TRACE_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def enable_trace(trace_file: str) -> logging.Handler:
    """
    Write a DEBUG trace of every AWS call to trace_file.

    Args:
        trace_file: Path of the trace file (appended to)

    Returns:
        The file handler that was attached
    """
    handler = logging.FileHandler(trace_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    for name in TRACE_LOGGERS:
        trace_logger = logging.getLogger(name)
        trace_logger.setLevel(logging.DEBUG)
        trace_logger.addHandler(handler)
        # Trace records go to the file only
        trace_logger.propagate = False

    logging.getLogger(__name__).info(f"AWS call tracing enabled: {trace_file}")
    return handler


def configure_cloudwatch_logging(
    log_group: str,
    log_stream: Optional[str] = None,
    region: str = "us-east-1",
) -> Optional[CloudWatchHandler]:
    """
    Add a CloudWatch handler to the root logger.

    Args:
        log_group: CloudWatch log group name
        log_stream: CloudWatch log stream name (defaults to a timestamped name)
        region: AWS region for CloudWatch

    Returns:
        The attached handler, or None if CloudWatch could not be set up
    """
    logger = logging.getLogger(__name__)
    log_stream = log_stream or f"run-{datetime.now(UTC).strftime('%Y%m%dT%H%M%SZ')}"

    try:
        handler = CloudWatchHandler(
            log_group=log_group,
            log_stream=log_stream,
            region=region,
        )
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"Failed to configure CloudWatch logging: {str(e)}")
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)
    logger.info(f"CloudWatch logging configured: group={log_group}, stream={log_stream}")
    return handler
