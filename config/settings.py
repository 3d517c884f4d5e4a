from decimal import Decimal
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	DATABASE_URL: str = 'sqlite+aiosqlite:///./exchange_rates.db'

	# Forex provider
	BONO_FOREX_API_KEY: str = ''
	FOREX_API_URL: str = 'https://forex.bono.ro/forex/rates'
	FOREX_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

	# Currencies
	BASE_CURRENCY: str = 'RON'
	SUPPORTED_CURRENCIES: list[str] = ['EUR', 'USD', 'GBP']
	DEFAULT_RATES: dict[str, Decimal] = {
		'EUR': Decimal('4.97'),
		'USD': Decimal('4.50'),
		'GBP': Decimal('5.80'),
	}

	# Shared secret the scheduler sends to the sync endpoint
	CRON_SECRET: str = ''

	# Application
	APP_NAME: str = 'Exchange Rate Service'
	DEBUG: bool = False
	LOG_LEVEL: str = 'INFO'
	JSON_LOGS: bool = False

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

	@model_validator(mode='after')
	def check_default_rates(self) -> 'Settings':
		self.BASE_CURRENCY = self.BASE_CURRENCY.upper()
		self.SUPPORTED_CURRENCIES = [c.upper() for c in self.SUPPORTED_CURRENCIES]
		if self.BASE_CURRENCY in self.SUPPORTED_CURRENCIES:
			raise ValueError('BASE_CURRENCY must not be listed in SUPPORTED_CURRENCIES')

		missing = [c for c in self.SUPPORTED_CURRENCIES if c not in self.DEFAULT_RATES]
		if missing:
			raise ValueError(f'DEFAULT_RATES has no entry for {", ".join(missing)}')
		if any(rate <= 0 for rate in self.DEFAULT_RATES.values()):
			raise ValueError('DEFAULT_RATES must be strictly positive')
		return self


@lru_cache
def get_settings() -> Settings:
	return Settings()
