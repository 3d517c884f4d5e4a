import asyncio
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from application.services.rate_resolver import RateResolver
from domain.exceptions.currency import DataIntegrityError, InvalidCurrencyError
from domain.models.currency import ConversionResult

CENT = Decimal('0.01')


def round_money(amount: Decimal) -> Decimal:
	# half away from zero: ROUND_HALF_UP on Decimal rounds -0.005 to -0.01
	return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class ConversionService:
	def __init__(self, resolver: RateResolver, base_currency: str):
		self.resolver = resolver
		self.base_currency = base_currency

	@property
	def currencies(self) -> list[str]:
		return self.resolver.currencies

	def _validate(self, currency: str) -> None:
		if currency != self.base_currency and currency not in self.currencies:
			raise InvalidCurrencyError(f'Currency {currency} is not supported')

	async def _rate(self, on_date: date, currency: str) -> Decimal:
		rate = await self.resolver.resolve(on_date, currency)
		if not rate.is_finite() or rate <= 0:
			raise DataIntegrityError(f'Resolved {currency} rate for {on_date} is not positive: {rate}')
		return rate

	async def to_base(self, amount: Decimal, currency: str, on_date: date) -> Decimal:
		self._validate(currency)
		if currency == self.base_currency:
			return amount
		return amount * await self._rate(on_date, currency)

	async def from_base(self, amount_base: Decimal, currency: str, on_date: date) -> Decimal:
		self._validate(currency)
		if currency == self.base_currency:
			return amount_base
		return amount_base / await self._rate(on_date, currency)

	async def breakdown(self, amount: Decimal, currency: str, on_date: date) -> ConversionResult:
		self._validate(currency)

		resolved = await asyncio.gather(*(self._rate(on_date, c) for c in self.currencies))
		rates = dict(zip(self.currencies, resolved, strict=True))

		base_amount = amount if currency == self.base_currency else amount * rates[currency]

		amounts = {}
		for target, rate in rates.items():
			# the input currency keeps the caller's figure instead of a round trip
			amounts[target] = round_money(amount if target == currency else base_amount / rate)

		return ConversionResult(
			amount=amount,
			currency=currency,
			date=on_date,
			base_currency=self.base_currency,
			base_amount=round_money(base_amount),
			amounts=amounts,
			rates=rates,
		)
