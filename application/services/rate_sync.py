import logging
from datetime import date
from decimal import Decimal

from domain.exceptions.currency import CurrencyException
from domain.models.currency import RateRecord, RateSource, SyncResult
from infrastructure.persistence.repositories.rates import RateStore
from infrastructure.providers.forex import ForexRateClient

logger = logging.getLogger(__name__)


class RateSyncService:
	"""Administrative entry point used by the scheduler and manual triggers."""

	def __init__(self, store: RateStore, client: ForexRateClient):
		self.store = store
		self.client = client

	async def sync(self, target_date: date | None = None) -> SyncResult:
		target_date = target_date or date.today()

		# ConfigurationError from the client is fatal here as well
		rate_set = await self.client.fetch(target_date)
		if rate_set is None:
			message = f'Failed to fetch forex rates for {target_date}'
			logger.error(message)
			return SyncResult(success=False, message=message)

		try:
			record = await self.store.upsert(rate_set.rate_date, rate_set.rates, RateSource.SYNC.value)
		except CurrencyException as e:
			logger.error(f'Rate sync for {target_date} failed: {e}')
			return SyncResult(success=False, message=str(e))

		summary = ', '.join(
			f'{currency}={rate if rate is not None else "n/a"}' for currency, rate in rate_set.rates.items()
		)
		message = f'Synced rates for {rate_set.rate_date}: {summary}'
		logger.info(message)
		return SyncResult(success=True, message=message, record=record)

	async def upsert_manual(self, rate_date: date, rates: dict[str, Decimal | None]) -> RateRecord:
		logger.info(f'Manual rate update for {rate_date}: {rates}')
		return await self.store.upsert(rate_date, rates, RateSource.MANUAL.value)

	async def latest(self) -> RateRecord | None:
		return await self.store.get_latest()

	async def history(self, start: date, end: date) -> list[RateRecord]:
		return await self.store.get_range(start, end)
