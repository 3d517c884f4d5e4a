from .requests import ManualRateRequest
from .responses import (
	ConversionResponse,
	RateRecordResponse,
	ResolvedRateResponse,
	SyncResponse,
)

__all__ = [
	'ConversionResponse',
	'ManualRateRequest',
	'RateRecordResponse',
	'ResolvedRateResponse',
	'SyncResponse',
]
