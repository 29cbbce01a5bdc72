"""Loyalty tier thresholds. Tier is a pure function of points and lifetime spend."""

from decimal import Decimal
from typing import Union

from detailing.schemas.customer_schema import LoyaltyTier

GOLD_POINTS = 1000
GOLD_SPEND = Decimal("500")
SILVER_POINTS = 500
SILVER_SPEND = Decimal("250")


def compute_tier(points: int, total_spent: Union[Decimal, int, float]) -> LoyaltyTier:
    """Either clause is enough: Gold at 1000 points or 500 spent, Silver at 500 or 250."""
    spent = Decimal(str(total_spent))
    if points >= GOLD_POINTS or spent >= GOLD_SPEND:
        return LoyaltyTier.GOLD
    if points >= SILVER_POINTS or spent >= SILVER_SPEND:
        return LoyaltyTier.SILVER
    return LoyaltyTier.BRONZE
