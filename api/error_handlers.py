import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.currency import (
	ConfigurationError,
	DataIntegrityError,
	InvalidCurrencyError,
	TransientLookupFailure,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidCurrencyError)
	async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	@app.exception_handler(DataIntegrityError)
	async def data_integrity_handler(request: Request, exc: DataIntegrityError):
		logger.error(f'Data integrity error: {exc}')
		return JSONResponse(status_code=422, content={'detail': str(exc)})

	@app.exception_handler(TransientLookupFailure)
	async def lookup_failure_handler(request: Request, exc: TransientLookupFailure):
		logger.error(f'Rate store unavailable: {exc}')
		return JSONResponse(status_code=503, content={'detail': 'Rate store unavailable'})

	@app.exception_handler(ConfigurationError)
	async def configuration_error_handler(request: Request, exc: ConfigurationError):
		logger.error(f'Configuration error: {exc}')
		return JSONResponse(status_code=500, content={'detail': 'Service is misconfigured'})
