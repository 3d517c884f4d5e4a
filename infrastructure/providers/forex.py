import asyncio
import logging
from datetime import date
from decimal import Decimal, InvalidOperation

import httpx

from domain.exceptions.currency import ConfigurationError, TransientLookupFailure
from domain.models.currency import LiveRateSet

logger = logging.getLogger(__name__)


def _parse_date(value: str | None) -> date | None:
	if not value:
		return None
	# Provider sends either 2026-01-15 or 2026-01-15T00:00:00
	return date.fromisoformat(value[:10])


class ForexRateClient:
	"""Client for the forex rates service.

	The service answers with the most recent rates published on or before the
	requested effective date, so weekends and holidays still get an answer.
	Every failure is reported as ``None``; only a missing credential raises.
	"""

	BASE_URL = 'https://forex.bono.ro/forex/rates'

	def __init__(
		self,
		api_key: str,
		base_currency: str,
		currencies: list[str],
		url: str | None = None,
		timeout: float = 5.0,
		client: httpx.AsyncClient | None = None,
	):
		self.api_key = api_key
		self.base_currency = base_currency
		self.currencies = list(currencies)
		self.url = url or self.BASE_URL
		self.timeout = timeout
		self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

	@property
	def name(self) -> str:
		return 'bono-forex'

	def _headers(self) -> dict[str, str]:
		if not self.api_key:
			raise ConfigurationError(
				'Missing BONO_FOREX_API_KEY environment variable. '
				'Set it in .env or your deployment secrets.'
			)
		return {'Content-Type': 'application/json', 'X-Bono-SecretKey': self.api_key}

	async def _request(self, effective_date: date, headers: dict[str, str]) -> dict:
		try:
			response = await self._client.post(
				self.url, json={'EffectiveDate': effective_date.isoformat()}, headers=headers
			)
			response.raise_for_status()
			return response.json()

		except httpx.HTTPStatusError as e:
			raise TransientLookupFailure(
				f'Forex HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise TransientLookupFailure(f'Forex request failed: {e.__class__.__name__}') from e
		except ValueError as e:
			raise TransientLookupFailure(f'Forex response parsing error: {str(e)}') from e

	def _parse(self, requested_date: date, data: dict) -> LiveRateSet:
		rate_map: dict[str, Decimal] = {}
		try:
			for entry in data['Rates']:
				if entry.get('ToCurrencyCode', self.base_currency).upper() != self.base_currency:
					continue
				value = Decimal(str(entry['RateValue']))
				# NaN, infinite, zero or negative from the provider means "no rate"
				if value.is_finite() and value > 0:
					rate_map[entry['FromCurrencyCode'].upper()] = value

			effective_date = _parse_date(data.get('EffectiveDate'))
			most_recent_rate_date = _parse_date(data.get('MostRecentRateDate'))
		except (KeyError, TypeError, AttributeError, ValueError, InvalidOperation) as e:
			raise TransientLookupFailure(f'Forex response parsing error: {e!r}') from e

		rates: dict[str, Decimal | None] = {}
		for currency in self.currencies:
			rates[currency] = rate_map.get(currency)

		return LiveRateSet(
			requested_date=requested_date,
			effective_date=effective_date,
			most_recent_rate_date=most_recent_rate_date,
			rates=rates,
		)

	async def fetch(self, effective_date: date) -> LiveRateSet | None:
		headers = self._headers()

		try:
			data = await asyncio.wait_for(
				self._request(effective_date, headers), timeout=self.timeout
			)
			rate_set = self._parse(effective_date, data)
		except TimeoutError:
			logger.error(f'Forex request for {effective_date} timed out after {self.timeout}s')
			return None
		except TransientLookupFailure as e:
			logger.error(f'Forex lookup for {effective_date} failed: {e}')
			return None

		if not rate_set.has_any_rate():
			logger.warning(f'Forex response for {effective_date} carried no usable rates')
			return None

		logger.info(
			f'Fetched forex rates for {effective_date} '
			f'(most recent rate date {rate_set.most_recent_rate_date})'
		)
		return rate_set

	async def close(self) -> None:
		await self._client.aclose()
