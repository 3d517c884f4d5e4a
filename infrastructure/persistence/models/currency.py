from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, Date, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class ExchangeRateDB(Base):
	__tablename__ = 'exchange_rates'

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	rate_date: Mapped[date] = mapped_column(Date, nullable=False)
	eur_to_ron: Mapped[Decimal | None] = mapped_column(DECIMAL(precision=18, scale=6), nullable=True)
	usd_to_ron: Mapped[Decimal | None] = mapped_column(DECIMAL(precision=18, scale=6), nullable=True)
	gbp_to_ron: Mapped[Decimal | None] = mapped_column(DECIMAL(precision=18, scale=6), nullable=True)
	source: Mapped[str] = mapped_column(String(20), nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

	__table_args__ = (UniqueConstraint('rate_date', name='uq_exchange_rates_rate_date'),)


def rate_column_name(currency: str, base_currency: str) -> str:
	return f'{currency.lower()}_to_{base_currency.lower()}'


def rate_column(currency: str, base_currency: str):
	"""Mapped column holding the rate for ``currency``, or KeyError if the table has none."""
	name = rate_column_name(currency, base_currency)
	column = ExchangeRateDB.__table__.columns.get(name)
	if column is None:
		raise KeyError(name)
	return getattr(ExchangeRateDB, name)
