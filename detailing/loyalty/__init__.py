from detailing.loyalty.ledger import LoyaltyLedger
from detailing.loyalty.tiers import compute_tier

__all__ = ["LoyaltyLedger", "compute_tier"]
