import asyncio
import logging
from datetime import date
from decimal import Decimal

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from domain.exceptions.currency import (
    ConfigurationError,
    InvalidCurrencyError,
    TransientLookupFailure,
)
from domain.models.currency import LiveRateSet, RateQuery, RateSource, RateTier, ResolvedRate
from infrastructure.persistence.repositories.rates import RateStore
from infrastructure.providers.forex import ForexRateClient

logger = logging.getLogger(__name__)


def _usable(rate: Decimal | None) -> Decimal | None:
    if rate is None or not rate.is_finite() or rate <= 0:
        return None
    return rate


class RateResolver:
    """Answers "rate to base for currency X on date D", never failing the caller.

    Tiers are tried in order and the first usable rate wins:

    1. exact-date lookup in the rate store
    2. most recent stored rate on or before the date (carry forward over
       weekends and holidays)
    3. live fetch from the forex provider; the whole rate set is written
       back to the store in a detached task
    4. the configured default for the currency

    Only ``ConfigurationError`` escapes; every other failure moves the chain
    to the next tier.
    """

    def __init__(
        self,
        store: RateStore,
        client: ForexRateClient,
        currencies: list[str],
        default_rates: dict[str, Decimal],
    ):
        self.store = store
        self.client = client
        self.currencies = list(currencies)
        self.default_rates = dict(default_rates)
        self._background_tasks: set[asyncio.Task] = set()

    async def resolve(self, on_date: date, currency: str) -> Decimal:
        resolved = await self.resolve_detailed(on_date, currency)
        return resolved.rate

    async def resolve_detailed(self, on_date: date, currency: str) -> ResolvedRate:
        if currency not in self.currencies:
            raise InvalidCurrencyError(f"Currency {currency} is not supported")

        query = RateQuery(date=on_date, currency=currency)

        rate = await self._from_fast_path(query)
        if rate is not None:
            return ResolvedRate(query=query, rate=rate, tier=RateTier.FAST_PATH)

        rate = await self._from_cache(query)
        if rate is not None:
            return ResolvedRate(query=query, rate=rate, tier=RateTier.CACHE)

        rate = await self._from_live(query)
        if rate is not None:
            return ResolvedRate(query=query, rate=rate, tier=RateTier.LIVE)

        return ResolvedRate(query=query, rate=self._from_default(query), tier=RateTier.DEFAULT)

    async def _from_fast_path(self, query: RateQuery) -> Decimal | None:
        try:
            rate = await self.store.get_rate(query.date, query.currency)
        except Exception as e:
            logger.warning(f"Fast-path lookup failed for {query}: {e}")
            return None

        rate = _usable(rate)
        if rate is None:
            logger.debug(f"Fast-path miss for {query}")
        return rate

    async def _from_cache(self, query: RateQuery) -> Decimal | None:
        try:
            rate = await self.store.get_most_recent_on_or_before(query.date, query.currency)
        except Exception as e:
            logger.warning(f"Cache range lookup failed for {query}: {e}")
            return None

        rate = _usable(rate)
        if rate is None:
            logger.info(f"No cached rate on or before {query.date} for {query.currency}")
        return rate

    async def _from_live(self, query: RateQuery) -> Decimal | None:
        try:
            rate_set = await self.client.fetch(query.date)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Live fetch failed for {query}: {e}")
            return None

        if rate_set is None:
            return None

        self._schedule_write_back(rate_set)

        rate = _usable(rate_set.rate_for(query.currency))
        if rate is None:
            logger.warning(f"Live rates for {query.date} carry no {query.currency} rate")
        return rate

    def _from_default(self, query: RateQuery) -> Decimal:
        rate = self.default_rates[query.currency]
        logger.warning(
            f"Falling back to default rate {rate} for {query}: "
            "forex client misconfigured or provider unavailable"
        )
        return rate

    def _schedule_write_back(self, rate_set: LiveRateSet) -> None:
        task = asyncio.create_task(
            self._write_back(rate_set), name=f"rate-write-back-{rate_set.rate_date}"
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._on_write_back_done)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(TransientLookupFailure),
        reraise=True,
    )
    async def _write_back(self, rate_set: LiveRateSet) -> None:
        await self.store.upsert(rate_set.rate_date, rate_set.rates, RateSource.LIVE.value)

    def _on_write_back_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Cache write-back {task.get_name()} was cancelled")
            return

        exc = task.exception()
        if exc is not None:
            logger.error(f"Cache write-back {task.get_name()} failed: {exc}", exc_info=exc)

    def pending_writes(self) -> int:
        return len(self._background_tasks)

    async def wait_for_background_writes(self) -> None:
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
