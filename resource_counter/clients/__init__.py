"""AWS service abstraction layer."""

from .pagination import Page, walk_pages
from .service_factory import (
    DEFAULT_REGION,
    AWSServiceFactory,
    ServiceFactory,
    ServiceFactoryError,
)
from .services import AWSAPIError

__all__ = [
    "Page",
    "walk_pages",
    "DEFAULT_REGION",
    "AWSServiceFactory",
    "ServiceFactory",
    "ServiceFactoryError",
    "AWSAPIError",
]
