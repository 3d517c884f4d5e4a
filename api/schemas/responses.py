from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from domain.models.currency import ConversionResult, RateRecord, ResolvedRate, SyncResult


class RateRecordResponse(BaseModel):
	rate_date: date = Field(..., description='Calendar date the rates apply to')
	rates: dict[str, Decimal | None] = Field(..., description='Rate to base per currency')
	source: str = Field(..., description='Provenance: live, sync or manual')
	created_at: datetime | None = None
	updated_at: datetime | None = None

	@classmethod
	def from_record(cls, record: RateRecord) -> 'RateRecordResponse':
		return cls(
			rate_date=record.rate_date,
			rates=record.rates,
			source=record.source,
			created_at=record.created_at,
			updated_at=record.updated_at,
		)


class ResolvedRateResponse(BaseModel):
	date: date
	currency: str
	base_currency: str
	rate: Decimal = Field(..., description='Rate to base currency')
	tier: str = Field(..., description='Resolution tier that produced the rate')

	@classmethod
	def from_resolved(cls, resolved: ResolvedRate, base_currency: str) -> 'ResolvedRateResponse':
		return cls(
			date=resolved.query.date,
			currency=resolved.query.currency,
			base_currency=base_currency,
			rate=resolved.rate,
			tier=resolved.tier.value,
		)

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'date': '2026-01-15',
				'currency': 'EUR',
				'base_currency': 'RON',
				'rate': 4.97,
				'tier': 'cache',
			}
		}
	)


class ConversionResponse(BaseModel):
	amount: Decimal = Field(..., description='Original amount requested')
	currency: str = Field(..., description='Currency of the original amount')
	date: date
	base_currency: str
	base_amount: Decimal = Field(..., description='Amount in base currency, two decimals')
	amounts: dict[str, Decimal] = Field(..., description='Amount per supported currency')
	rates: dict[str, Decimal] = Field(..., description='Unrounded rate used per currency')

	@classmethod
	def from_result(cls, result: ConversionResult) -> 'ConversionResponse':
		return cls(
			amount=result.amount,
			currency=result.currency,
			date=result.date,
			base_currency=result.base_currency,
			base_amount=result.base_amount,
			amounts=result.amounts,
			rates=result.rates,
		)


class SyncResponse(BaseModel):
	success: bool
	message: str
	record: RateRecordResponse | None = None

	@classmethod
	def from_result(cls, result: SyncResult) -> 'SyncResponse':
		return cls(
			success=result.success,
			message=result.message,
			record=RateRecordResponse.from_record(result.record) if result.record else None,
		)
