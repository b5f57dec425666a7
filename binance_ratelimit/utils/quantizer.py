"""
Limit quantizer - half-up rounding for quota limits and backoff seconds
Python's round() is banker's rounding; exchange limits are scaled with half-up
"""
from decimal import Decimal, ROUND_HALF_UP
import logging

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero"""
    return int(Decimal(str(value)).to_integral_value(rounding=ROUND_HALF_UP))


def scale_limit(limit: float, factor: float) -> int:
    """Apply a safety factor to a raw limit, e.g. 1200 x 0.95 -> 1140"""
    return round_half_up(Decimal(str(limit)) * Decimal(str(factor)))
