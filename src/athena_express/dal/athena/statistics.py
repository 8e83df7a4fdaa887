"""Scanned-data and cost arithmetic for Athena query statistics."""

import math
from typing import Optional

# $5 per TB scanned, billed with a 10 MB minimum per query.
COST_PER_MB = 0.000004768
BYTES_IN_MB = 1048576
MINIMUM_BILLED_MB = 10
COST_FOR_10MB = COST_PER_MB * MINIMUM_BILLED_MB


def data_scanned_in_mb(data_scanned_in_bytes: Optional[int]) -> int:
    """Convert bytes scanned to whole megabytes, rounding half up."""
    if not data_scanned_in_bytes:
        return 0
    return int(math.floor(data_scanned_in_bytes / BYTES_IN_MB + 0.5))


def query_cost_in_usd(data_in_mb: int) -> float:
    """Estimate the query cost in USD for ``data_in_mb`` megabytes scanned."""
    if data_in_mb > MINIMUM_BILLED_MB:
        return data_in_mb * COST_PER_MB
    return COST_FOR_10MB
