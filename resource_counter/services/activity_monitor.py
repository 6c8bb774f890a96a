"""Activity monitor receiving progress and error notifications.

Counters only ever write to the monitor; nothing they compute depends on it.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ActivityMonitor(Protocol):
    """Receives start/end-of-action, progress and error notifications."""

    def start_action(self, label: str, *args: Any) -> None: ...

    def end_action(self, fmt: str, *args: Any) -> None: ...

    def message(self, fmt: str, *args: Any) -> None: ...

    def sub_resource_error(self, message: str) -> None: ...

    def check_error(self, err: Exception | None) -> bool: ...


class LoggingActivityMonitor:
    """
    ActivityMonitor writing to the logging hierarchy.

    Actions and their results are logged at INFO, per-region progress marks
    at DEBUG and errors at WARNING/ERROR. The monitor also remembers whether
    any error was reported so the CLI can pick its exit status.
    """

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger
        self._action: str | None = None
        self.error_occurred = False
        self.error_messages: list[str] = []

    def start_action(self, label: str, *args: Any) -> None:
        self._action = label % args if args else label
        self._log.info(f"{self._action}...")

    def end_action(self, fmt: str, *args: Any) -> None:
        result = fmt % args if args else fmt
        self._log.info(f"{self._action or 'Action'}: {result}")
        self._action = None

    def message(self, fmt: str, *args: Any) -> None:
        self._log.debug(fmt % args if args else fmt)

    def sub_resource_error(self, message: str) -> None:
        self.error_occurred = True
        self.error_messages.append(message)
        self._log.warning(message)

    def check_error(self, err: Exception | None) -> bool:
        """
        Report err if present.

        Returns:
            True if an error was supplied (and reported), False otherwise
        """
        if err is None:
            return False
        self.error_occurred = True
        self.error_messages.append(str(err))
        self._log.error(f"{self._action or 'Error'}: {str(err)}")
        return True
