import logging
from abc import ABC, abstractmethod
from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from domain.exceptions.currency import (
	ConfigurationError,
	DataIntegrityError,
	InvalidCurrencyError,
	TransientLookupFailure,
)
from domain.models.currency import RateRecord
from infrastructure.persistence.database import Database
from infrastructure.persistence.models.currency import ExchangeRateDB, rate_column

logger = logging.getLogger(__name__)


class RateStore(ABC):
	"""Date-keyed store of rate records, at most one record per calendar date."""

	@abstractmethod
	async def upsert(
		self, rate_date: date, rates: dict[str, Decimal | None], source: str
	) -> RateRecord:
		...

	@abstractmethod
	async def get_rate(self, rate_date: date, currency: str) -> Decimal | None:
		...

	@abstractmethod
	async def get_latest(self) -> RateRecord | None:
		...

	@abstractmethod
	async def get_range(self, start: date, end: date) -> list[RateRecord]:
		...

	@abstractmethod
	async def get_most_recent_on_or_before(self, on_date: date, currency: str) -> Decimal | None:
		...


class SQLRateStore(RateStore):
	def __init__(self, db: Database, base_currency: str, currencies: list[str]):
		self.db = db
		self.base_currency = base_currency
		self.currencies = list(currencies)

		for currency in self.currencies:
			try:
				rate_column(currency, base_currency)
			except KeyError as e:
				raise ConfigurationError(
					f'exchange_rates table has no column for {currency}/{base_currency}'
				) from e

	def _column(self, currency: str):
		if currency not in self.currencies:
			raise InvalidCurrencyError(f'Currency {currency} is not supported')
		return rate_column(currency, self.base_currency)

	def _insert(self):
		dialect = self.db.dialect_name
		if dialect == 'postgresql':
			return postgresql.insert
		if dialect == 'sqlite':
			return sqlite.insert
		raise ConfigurationError(f'Upsert is not supported for the {dialect} dialect')

	def _checked(self, value: Decimal | None, rate_date: date | None, currency: str) -> Decimal | None:
		if value is None:
			return None
		if not value.is_finite() or value <= 0:
			raise DataIntegrityError(
				f'Stored rate for {currency} on {rate_date} is not a positive number: {value}'
			)
		return value

	def _to_domain(self, row: ExchangeRateDB) -> RateRecord:
		rates = {}
		for currency in self.currencies:
			value = getattr(row, self._column(currency).key)
			try:
				rates[currency] = self._checked(value, row.rate_date, currency)
			except DataIntegrityError as e:
				logger.error(f'{e}; treating it as absent')
				rates[currency] = None

		return RateRecord(
			rate_date=row.rate_date,
			rates=rates,
			source=row.source,
			created_at=row.created_at,
			updated_at=row.updated_at,
		)

	async def upsert(
		self, rate_date: date, rates: dict[str, Decimal | None], source: str
	) -> RateRecord:
		unknown = set(rates) - set(self.currencies)
		if unknown:
			raise DataIntegrityError(f'Unsupported currencies in rate set: {sorted(unknown)}')

		values = {}
		for currency in self.currencies:
			rate = rates.get(currency)
			if rate is not None and (not rate.is_finite() or rate <= 0):
				raise DataIntegrityError(f'Refusing to store non-positive or non-finite {currency} rate {rate}')
			values[self._column(currency).key] = rate

		now = datetime.now(UTC)
		insert = self._insert()
		stmt = insert(ExchangeRateDB).values(
			rate_date=rate_date, source=source, created_at=now, updated_at=now, **values
		)
		stmt = stmt.on_conflict_do_update(
			index_elements=['rate_date'],
			set_={**values, 'source': source, 'updated_at': now},
		)

		try:
			async with self.db.session() as session:
				await session.execute(stmt)
				result = await session.execute(
					select(ExchangeRateDB).where(ExchangeRateDB.rate_date == rate_date)
				)
				row = result.scalar_one()
				record = self._to_domain(row)
		except SQLAlchemyError as e:
			raise TransientLookupFailure(f'Failed to upsert rates for {rate_date}: {e}') from e

		logger.info(f'Stored {source} rates for {rate_date}')
		return record

	async def get_rate(self, rate_date: date, currency: str) -> Decimal | None:
		column = self._column(currency)
		stmt = select(column).where(ExchangeRateDB.rate_date == rate_date)
		try:
			async with self.db.session() as session:
				value = (await session.execute(stmt)).scalar_one_or_none()
		except SQLAlchemyError as e:
			raise TransientLookupFailure(f'Rate lookup failed for {currency} on {rate_date}: {e}') from e
		return self._checked(value, rate_date, currency)

	async def get_latest(self) -> RateRecord | None:
		stmt = select(ExchangeRateDB).order_by(ExchangeRateDB.rate_date.desc()).limit(1)
		try:
			async with self.db.session() as session:
				row = (await session.execute(stmt)).scalar_one_or_none()
				return self._to_domain(row) if row is not None else None
		except SQLAlchemyError as e:
			raise TransientLookupFailure(f'Latest rate lookup failed: {e}') from e

	async def get_range(self, start: date, end: date) -> list[RateRecord]:
		stmt = (
			select(ExchangeRateDB)
			.filter(ExchangeRateDB.rate_date >= start, ExchangeRateDB.rate_date <= end)
			.order_by(ExchangeRateDB.rate_date.desc())
		)
		try:
			async with self.db.session() as session:
				rows = (await session.execute(stmt)).scalars().all()
				return [self._to_domain(r) for r in rows]
		except SQLAlchemyError as e:
			raise TransientLookupFailure(f'Range lookup failed for {start}..{end}: {e}') from e

	async def get_most_recent_on_or_before(self, on_date: date, currency: str) -> Decimal | None:
		column = self._column(currency)
		stmt = (
			select(ExchangeRateDB.rate_date, column)
			.filter(ExchangeRateDB.rate_date <= on_date, column.is_not(None))
			.order_by(ExchangeRateDB.rate_date.desc())
			.limit(1)
		)
		try:
			async with self.db.session() as session:
				row = (await session.execute(stmt)).first()
		except SQLAlchemyError as e:
			raise TransientLookupFailure(
				f'Carry-forward lookup failed for {currency} on {on_date}: {e}'
			) from e

		if row is None:
			return None
		return self._checked(row[1], row[0], currency)
