from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class RateSource(str, Enum):
    LIVE = "live"
    SYNC = "sync"
    MANUAL = "manual"


@dataclass(frozen=True)
class RateQuery:
    date: date
    currency: str

    def __str__(self) -> str:
        return f"{self.currency}@{self.date.isoformat()}"


@dataclass(frozen=True)
class RateRecord:
    rate_date: date
    rates: dict[str, Decimal | None]  # currency -> rate to base, None if unknown
    source: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LiveRateSet:
    """Rates returned by the forex provider for a requested date."""

    requested_date: date
    effective_date: date | None
    most_recent_rate_date: date | None
    rates: dict[str, Decimal | None]

    @property
    def rate_date(self) -> date:
        # Provider answers with its most recent publication, which may be
        # earlier than the requested day (weekends, holidays).
        return self.most_recent_rate_date or self.effective_date or self.requested_date

    def rate_for(self, currency: str) -> Decimal | None:
        return self.rates.get(currency)

    def has_any_rate(self) -> bool:
        return any(rate is not None for rate in self.rates.values())


@dataclass(frozen=True)
class ConversionResult:
    amount: Decimal
    currency: str
    date: date
    base_currency: str
    base_amount: Decimal
    amounts: dict[str, Decimal] = field(default_factory=dict)
    rates: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncResult:
    success: bool
    message: str
    record: RateRecord | None = None


class RateTier(str, Enum):
    FAST_PATH = "fast_path"
    CACHE = "cache"
    LIVE = "live"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedRate:
    query: RateQuery
    rate: Decimal
    tier: RateTier
