"""
Simple (non-compounding) interest accrued per whole day.
"""

from __future__ import annotations

from config import staking as staking_config
from core.errors import InvalidTimeRangeError
from core.validation import require_unsigned
from infra.logger import get_logger
from position.position import Position


def days_elapsed(since: int, now: int) -> int:
    """Whole days between two epoch-second timestamps, truncated."""
    require_unsigned("since", since)
    require_unsigned("now", now)
    if now < since:
        raise InvalidTimeRangeError(since, now)
    return (now - since) // staking_config.SECONDS_PER_DAY


def calculate_interest(apy_basis_points: int, principal: int, days: int) -> int:
    """
    principal * apy_bps * days / (10000 * 365), integer math.

    All numerator terms are multiplied before the single truncating division
    so small positions do not lose their yield to intermediate rounding.
    """
    require_unsigned("apy_basis_points", apy_basis_points)
    require_unsigned("principal", principal)
    require_unsigned("days", days)
    numerator = principal * apy_basis_points * days
    return numerator // (staking_config.BASIS_POINTS * staking_config.DAYS_PER_YEAR)


class InterestCalculator:
    """Compute payouts for positions against a supplied clock reading."""

    def __init__(self) -> None:
        self.logger = get_logger("InterestCalculator")

    def days_elapsed(self, since: int, now: int) -> int:
        return days_elapsed(since, now)

    def calculate_interest(self, apy_basis_points: int, principal: int, days: int) -> int:
        return calculate_interest(apy_basis_points, principal, days)

    def accrued_interest(self, position: Position, now: int) -> int:
        days = days_elapsed(position.created_at, now)
        interest = calculate_interest(position.apy_basis_points, position.principal, days)
        self.logger.debug(
            "Position %s accrued %s over %s days at %s bps",
            position.position_id,
            interest,
            days,
            position.apy_basis_points,
        )
        return interest
