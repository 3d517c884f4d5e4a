import logging
import secrets
from typing import Annotated

from fastapi import Header, HTTPException, status

from application.services import ConversionService, RateResolver, RateSyncService
from config.settings import Settings, get_settings
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.rates import SQLRateStore
from infrastructure.providers import ForexRateClient

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	db: Database | None = None
	forex_client: ForexRateClient | None = None
	resolver: RateResolver | None = None
	conversion_service: ConversionService | None = None
	sync_service: RateSyncService | None = None


deps = AppDependencies()


def init_dependencies(settings: Settings | None = None) -> None:
	"""Build the store, client and services once. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()

	deps.db = Database(settings.DATABASE_URL)
	store = SQLRateStore(
		deps.db, base_currency=settings.BASE_CURRENCY, currencies=settings.SUPPORTED_CURRENCIES
	)
	deps.forex_client = ForexRateClient(
		api_key=settings.BONO_FOREX_API_KEY,
		base_currency=settings.BASE_CURRENCY,
		currencies=settings.SUPPORTED_CURRENCIES,
		url=settings.FOREX_API_URL,
		timeout=settings.FOREX_TIMEOUT_SECONDS,
	)
	if not settings.BONO_FOREX_API_KEY:
		logger.warning('BONO_FOREX_API_KEY is not set; live rate fetches will fail')

	deps.resolver = RateResolver(
		store=store,
		client=deps.forex_client,
		currencies=settings.SUPPORTED_CURRENCIES,
		default_rates=settings.DEFAULT_RATES,
	)
	deps.conversion_service = ConversionService(deps.resolver, base_currency=settings.BASE_CURRENCY)
	deps.sync_service = RateSyncService(store=store, client=deps.forex_client)
	logger.info('Dependencies initialized')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.resolver:
		pending = deps.resolver.pending_writes()
		if pending:
			logger.info(f'Waiting for {pending} cache write-back(s)')
		await deps.resolver.wait_for_background_writes()
	if deps.forex_client:
		await deps.forex_client.close()
	if deps.db:
		await deps.db.close()

	logger.info('Cleanup complete')


def get_database() -> Database:
	if deps.db is None:
		raise RuntimeError('Database is not initialized')
	return deps.db


def get_rate_resolver() -> RateResolver:
	if deps.resolver is None:
		raise RuntimeError('Rate resolver not initialized')
	return deps.resolver


def get_conversion_service() -> ConversionService:
	if deps.conversion_service is None:
		raise RuntimeError('Conversion service not initialized')
	return deps.conversion_service


def get_sync_service() -> RateSyncService:
	if deps.sync_service is None:
		raise RuntimeError('Sync service not initialized')
	return deps.sync_service


def verify_cron_secret(authorization: Annotated[str | None, Header()] = None) -> None:
	cron_secret = get_settings().CRON_SECRET
	if not cron_secret:
		return
	if authorization is None or not secrets.compare_digest(authorization, f'Bearer {cron_secret}'):
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Unauthorized')
