from datetime import date
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from api.dependencies import (
	get_conversion_service,
	get_rate_resolver,
	get_sync_service,
	verify_cron_secret,
)
from api.schemas import (
	ConversionResponse,
	ManualRateRequest,
	RateRecordResponse,
	ResolvedRateResponse,
	SyncResponse,
)
from application.services import ConversionService, RateResolver, RateSyncService

router = APIRouter(prefix='/api', tags=['rates'])

CurrencyPath = Annotated[str, Path(min_length=3, max_length=3)]


@router.get(
	'/rates/latest',
	response_model=RateRecordResponse,
	status_code=status.HTTP_200_OK,
	summary='Most recent stored rate record',
)
async def get_latest_rates(
	service: Annotated[RateSyncService, Depends(get_sync_service)],
) -> RateRecordResponse:
	record = await service.latest()
	if record is None:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='No rates stored yet')
	return RateRecordResponse.from_record(record)


@router.get(
	'/rates',
	response_model=list[RateRecordResponse],
	status_code=status.HTTP_200_OK,
	summary='Stored rate records in a date range, newest first',
)
async def get_rates_in_range(
	start: Annotated[date, Query()],
	end: Annotated[date, Query()],
	service: Annotated[RateSyncService, Depends(get_sync_service)],
) -> list[RateRecordResponse]:
	if start > end:
		raise HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST, detail='start must not be after end'
		)
	records = await service.history(start, end)
	return [RateRecordResponse.from_record(r) for r in records]


@router.get(
	'/rates/{on_date}/{currency}',
	response_model=ResolvedRateResponse,
	status_code=status.HTTP_200_OK,
	summary='Resolve the rate to base currency for a date',
)
async def resolve_rate(
	on_date: date,
	currency: CurrencyPath,
	resolver: Annotated[RateResolver, Depends(get_rate_resolver)],
	conversion: Annotated[ConversionService, Depends(get_conversion_service)],
) -> ResolvedRateResponse:
	resolved = await resolver.resolve_detailed(on_date, currency.upper())
	return ResolvedRateResponse.from_resolved(resolved, base_currency=conversion.base_currency)


@router.get(
	'/convert/{currency}/{amount}',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Break an amount down into every supported currency',
)
async def convert_amount(
	currency: CurrencyPath,
	amount: Annotated[Decimal, Path(gt=0)],
	service: Annotated[ConversionService, Depends(get_conversion_service)],
	on_date: Annotated[date | None, Query(alias='date')] = None,
) -> ConversionResponse:
	result = await service.breakdown(amount, currency.upper(), on_date or date.today())
	return ConversionResponse.from_result(result)


@router.post(
	'/rates/sync',
	response_model=SyncResponse,
	status_code=status.HTTP_200_OK,
	summary='Fetch live rates and store them',
	dependencies=[Depends(verify_cron_secret)],
)
async def sync_rates(
	response: Response,
	service: Annotated[RateSyncService, Depends(get_sync_service)],
	target_date: Annotated[date | None, Query(alias='date')] = None,
) -> SyncResponse:
	result = await service.sync(target_date)
	if not result.success:
		response.status_code = status.HTTP_502_BAD_GATEWAY
	return SyncResponse.from_result(result)


@router.put(
	'/rates/{rate_date}',
	response_model=RateRecordResponse,
	status_code=status.HTTP_200_OK,
	summary='Manually set the rates for a date',
	dependencies=[Depends(verify_cron_secret)],
)
async def put_manual_rates(
	rate_date: date,
	request: ManualRateRequest,
	service: Annotated[RateSyncService, Depends(get_sync_service)],
) -> RateRecordResponse:
	record = await service.upsert_manual(rate_date, request.rates)
	return RateRecordResponse.from_record(record)
