class CurrencyException(Exception):
    pass


class InvalidCurrencyError(CurrencyException):
    pass


class ConfigurationError(CurrencyException):
    """Required configuration is missing. Never absorbed by the fallback chain."""


class TransientLookupFailure(CurrencyException):
    pass


class DataIntegrityError(CurrencyException):
    pass
