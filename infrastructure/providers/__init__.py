from .forex import ForexRateClient

__all__ = ['ForexRateClient']
