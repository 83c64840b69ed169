"""
Rental pricing rules.

All rates derive from an item's market rate and are stored as integers:
- daily: 2% of market rate
- weekly: 1.5% per day over 7 days (10.5%)
- collateral: 80% of market rate
"""
DAILY_RATE_PERMILLE = 20
WEEKLY_RATE_PERMILLE = 105
COLLATERAL_PERMILLE = 800

WEEKLY_THRESHOLD_DAYS = 6  # more than this is billed at the weekly rate
MIN_RENTAL_DAYS = 1
MAX_RENTAL_DAYS = 7

CREDIT_VALUE = 80_000  # 1 credit = 80k value units


def derive_rates(market_rate: int) -> tuple[int, int, int]:
    """Return (daily_rate, weekly_rate, required_collateral) for a market rate."""
    value = max(0, int(market_rate))
    daily = value * DAILY_RATE_PERMILLE // 1000
    weekly = value * WEEKLY_RATE_PERMILLE // 1000
    collateral = value * COLLATERAL_PERMILLE // 1000
    return daily, weekly, collateral


def rental_type_for(rental_days: int) -> str:
    return "weekly" if rental_days > WEEKLY_THRESHOLD_DAYS else "daily"


def line_cost(daily_rate: int, weekly_rate: int, rental_days: int, quantity: int) -> int:
    if rental_days <= WEEKLY_THRESHOLD_DAYS:
        rate = daily_rate * rental_days
    else:
        rate = weekly_rate
    return rate * quantity


def line_collateral(required_collateral: int, quantity: int) -> int:
    return required_collateral * quantity


def credits_for(collateral_amount: int) -> int:
    if collateral_amount <= 0:
        return 0
    return -(-collateral_amount // CREDIT_VALUE)


def reconcile_available(old_quantity: int, old_available: int, new_quantity: int) -> int:
    """
    New available stock after a quantity edit, keeping the units currently
    out on rent out on rent.
    """
    rented = max(0, old_quantity - old_available)
    return min(new_quantity, max(0, new_quantity - rented))
