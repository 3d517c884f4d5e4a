import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import cleanup_dependencies, deps, init_dependencies
from api.error_handlers import register_exception_handlers
from api.routes import health, rates
from config.logging import configure_logging
from config.settings import get_settings

logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
	configure_logging(settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
	logger.info('Starting Exchange Rate Service...')

	init_dependencies(settings)
	if deps.db is None:
		raise RuntimeError('Database not initialized')
	await deps.db.create_tables()
	logger.info('Database tables created')

	logger.info('Application ready')

	yield

	logger.info('Shutting down...')
	await cleanup_dependencies()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
	logger.error(f'Unhandled exception: {exc}', exc_info=True)
	return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


app.include_router(rates.router)
app.include_router(health.router)
register_exception_handlers(app)
