"""Paginated traversal protocol.

Provider list operations are exposed as lazy iterators of Page objects. Each
call to a list operation returns a fresh iterator, and no request is sent
until the first page is pulled. A failing request surfaces as an exception
at the point of iteration where that page would have been produced.

Callers that prefer the continuation-callback form use walk_pages(), whose
callback receives (page, is_last_page) and returns False to stop paging.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A function returning one batch of items plus the token of the next batch
# (None or "" when there are no more batches).
FetchPage = Callable[[str | None], tuple[list[T], str | None]]


@dataclass
class Page(Generic[T]):
    """One batch of results from a paginated list call."""

    items: list[T] = field(default_factory=list)
    is_last: bool = True

    def __len__(self) -> int:
        return len(self.items)


def token_pages(fetch: FetchPage) -> Iterator[Page[T]]:
    """
    Drive a token-based list operation page by page.

    Args:
        fetch: Called with the previous continuation token (None first)

    Yields:
        Pages until the provider stops returning a continuation token
    """
    token: str | None = None
    while True:
        items, token = fetch(token)
        yield Page(items=list(items), is_last=not token)
        if not token:
            return


def boto_pages(
    client: Any,
    operation_name: str,
    items_of: str | Callable[[dict], list],
    next_token_key: str,
    **kwargs: Any,
) -> Iterator[Page]:
    """
    Page through a boto3 list/describe operation.

    Args:
        client: boto3 client exposing the operation's paginator
        operation_name: Paginator name (e.g. "list_clusters")
        items_of: Response key holding the page's items, or a function
                  extracting them from the raw response
        next_token_key: Response key of the continuation token, used to flag
                        the last page without fetching ahead
        **kwargs: Operation parameters

    Yields:
        One Page per provider response
    """
    paginator = client.get_paginator(operation_name)
    for response in paginator.paginate(**kwargs):
        if callable(items_of):
            items = items_of(response)
        else:
            items = response.get(items_of, [])
        yield Page(items=list(items), is_last=not response.get(next_token_key))


def walk_pages(pages: Iterable[Page[T]], fn: Callable[[Page[T], bool], bool]) -> int:
    """
    Invoke fn once per page until it returns False or pages run out.

    Args:
        pages: Page iterator from a list operation
        fn: Continuation callback receiving (page, is_last_page)

    Returns:
        Number of pages handed to fn
    """
    visited = 0
    for page in pages:
        visited += 1
        if not fn(page, page.is_last):
            logger.debug(f"Paging stopped by callback after {visited} page(s)")
            break
    return visited


def count_items(pages: Iterable[Page]) -> int:
    """Sum the number of items across every page."""
    return sum(len(page.items) for page in pages)
