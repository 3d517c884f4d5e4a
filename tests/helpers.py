from datetime import date
from decimal import Decimal

from domain.models.currency import LiveRateSet

BASE_CURRENCY = "RON"
CURRENCIES = ["EUR", "USD", "GBP"]
DEFAULT_RATES = {
    "EUR": Decimal("4.97"),
    "USD": Decimal("4.50"),
    "GBP": Decimal("5.80"),
}


def make_rate_set(
    requested: date,
    rates: dict[str, str | None],
    most_recent: date | None = None,
) -> LiveRateSet:
    """Build a provider answer; currencies left out are absent."""
    return LiveRateSet(
        requested_date=requested,
        effective_date=requested,
        most_recent_rate_date=most_recent or requested,
        rates={
            c: Decimal(rates[c]) if rates.get(c) is not None else None
            for c in CURRENCIES
        },
    )
