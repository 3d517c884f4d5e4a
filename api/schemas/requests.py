from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ManualRateRequest(BaseModel):
	rates: dict[str, Decimal | None] = Field(..., min_length=1)

	@field_validator('rates')
	@classmethod
	def uppercase_and_positive(cls, v: dict[str, Decimal | None]):
		normalized = {}
		for code, rate in v.items():
			if rate is not None and rate <= 0:
				raise ValueError(f'Rate for {code} must be positive')
			normalized[code.upper()] = rate
		return normalized

	model_config = ConfigDict(
		json_schema_extra={'example': {'rates': {'EUR': 4.97, 'USD': 4.50, 'GBP': 5.80}}}
	)
