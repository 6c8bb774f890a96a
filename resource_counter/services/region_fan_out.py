# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Per-region fan-out shared by every counter.

Regions are counted one at a time by default. With max_concurrent above 1,
regions run on a thread pool bounded by an asyncio semaphore. Either way the
results come back in the order of the input regions, so merged error lists
are reproducible.
"""

import asyncio
import logging
from typing import Callable

from ..models.counts import ResourceCount

logger = logging.getLogger(__name__)

RegionCounter = Callable[[str], ResourceCount]


async def _gather_regions(
    regions: list[str],
    count_region: RegionCounter,
    max_concurrent: int,
) -> list[ResourceCount]:
    semaphore = asyncio.Semaphore(max_concurrent)
    loop = asyncio.get_running_loop()

    async def count_with_semaphore(region: str) -> ResourceCount:
        async with semaphore:
            return await loop.run_in_executor(None, count_region, region)

    # gather() keeps results in task order regardless of completion order
    return await asyncio.gather(*(count_with_semaphore(region) for region in regions))


def fan_out_regions(
    regions: list[str],
    count_region: RegionCounter,
    max_concurrent: int = 1,
) -> list[ResourceCount]:
    """
    Count every region and return the per-region results in input order.

    Args:
        regions: Regions to visit ("" is the default region)
        count_region: Counts one region; must record failures, not raise them
        max_concurrent: Maximum regions counted at the same time

    Returns:
        One ResourceCount per region, aligned with regions
    """
    if max_concurrent <= 1 or len(regions) <= 1:
        return [count_region(region) for region in regions]

    logger.debug(f"Counting {len(regions)} regions with concurrency {max_concurrent}")
    return asyncio.run(_gather_regions(regions, count_region, max_concurrent))
