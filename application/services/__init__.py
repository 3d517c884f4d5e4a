from .conversion_service import ConversionService
from .rate_resolver import RateResolver
from .rate_sync import RateSyncService

__all__ = ['ConversionService', 'RateResolver', 'RateSyncService']
