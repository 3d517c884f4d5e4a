from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_database, get_rate_resolver
from application.services import RateResolver
from infrastructure.persistence.database import Database

router = APIRouter(tags=['health'])


@router.get('/health', summary='Liveness and database connectivity')
async def health(
	response: Response,
	db: Annotated[Database, Depends(get_database)],
	resolver: Annotated[RateResolver, Depends(get_rate_resolver)],
) -> dict:
	database_ok = await db.ping()
	if not database_ok:
		response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

	return {
		'status': 'ok' if database_ok else 'degraded',
		'database': 'up' if database_ok else 'down',
		'pending_cache_writes': resolver.pending_writes(),
	}
