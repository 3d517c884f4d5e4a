# nosec B101


import asyncio
import time
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from domain.exceptions.currency import ConfigurationError
from infrastructure.providers.forex import ForexRateClient

CURRENCIES = ['EUR', 'USD', 'GBP']


def make_client(mock_client, api_key='test_key', timeout=5.0):
    return ForexRateClient(
        api_key=api_key,
        base_currency='RON',
        currencies=CURRENCIES,
        timeout=timeout,
        client=mock_client,
    )


def ok_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


FULL_PAYLOAD = {
    'EffectiveDate': '2026-01-17',
    'MostRecentRateDate': '2026-01-16',
    'Rates': [
        {'FromCurrencyCode': 'EUR', 'ToCurrencyCode': 'RON', 'RateValue': 4.97},
        {'FromCurrencyCode': 'USD', 'ToCurrencyCode': 'RON', 'RateValue': 4.5},
        {'FromCurrencyCode': 'GBP', 'ToCurrencyCode': 'RON', 'RateValue': 5.8},
    ],
}


@pytest.mark.asyncio
async def test_fetch_parses_rates_and_dates():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(FULL_PAYLOAD)

    client = make_client(mock_client)
    rate_set = await client.fetch(date(2026, 1, 17))

    assert rate_set is not None
    assert rate_set.requested_date == date(2026, 1, 17)
    assert rate_set.effective_date == date(2026, 1, 17)
    assert rate_set.most_recent_rate_date == date(2026, 1, 16)
    assert rate_set.rate_date == date(2026, 1, 16)
    assert rate_set.rates == {
        'EUR': Decimal('4.97'),
        'USD': Decimal('4.5'),
        'GBP': Decimal('5.8'),
    }


@pytest.mark.asyncio
async def test_fetch_sends_date_and_secret_header():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(FULL_PAYLOAD)

    client = make_client(mock_client, api_key='s3cret')
    await client.fetch(date(2026, 1, 15))

    mock_client.post.assert_called_once()
    call_args = mock_client.post.call_args
    assert call_args[0][0] == 'https://forex.bono.ro/forex/rates'
    assert call_args[1]['json'] == {'EffectiveDate': '2026-01-15'}
    assert call_args[1]['headers']['X-Bono-SecretKey'] == 's3cret'


@pytest.mark.asyncio
async def test_fetch_accepts_datetime_strings():
    payload = dict(FULL_PAYLOAD, MostRecentRateDate='2026-01-16T00:00:00')
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    rate_set = await make_client(mock_client).fetch(date(2026, 1, 17))

    assert rate_set.most_recent_rate_date == date(2026, 1, 16)


@pytest.mark.asyncio
async def test_missing_currency_is_none_not_zero():
    payload = {
        'EffectiveDate': '2026-01-15',
        'MostRecentRateDate': '2026-01-15',
        'Rates': [
            {'FromCurrencyCode': 'EUR', 'ToCurrencyCode': 'RON', 'RateValue': 4.97},
            {'FromCurrencyCode': 'USD', 'ToCurrencyCode': 'RON', 'RateValue': 0},
        ],
    }
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    rate_set = await make_client(mock_client).fetch(date(2026, 1, 15))

    assert rate_set.rate_for('EUR') == Decimal('4.97')
    assert rate_set.rate_for('USD') is None
    assert rate_set.rate_for('GBP') is None


@pytest.mark.asyncio
async def test_entries_quoted_against_other_currencies_are_ignored():
    payload = {
        'EffectiveDate': '2026-01-15',
        'MostRecentRateDate': '2026-01-15',
        'Rates': [
            {'FromCurrencyCode': 'EUR', 'ToCurrencyCode': 'USD', 'RateValue': 1.09},
            {'FromCurrencyCode': 'GBP', 'ToCurrencyCode': 'RON', 'RateValue': 5.8},
        ],
    }
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    rate_set = await make_client(mock_client).fetch(date(2026, 1, 15))

    assert rate_set.rate_for('EUR') is None
    assert rate_set.rate_for('GBP') == Decimal('5.8')


@pytest.mark.asyncio
@pytest.mark.parametrize('bad_value', [float('nan'), float('inf'), float('-inf'), 'NaN'])
async def test_non_finite_rate_is_treated_as_absent(bad_value):
    payload = {
        'EffectiveDate': '2026-01-15',
        'MostRecentRateDate': '2026-01-15',
        'Rates': [
            {'FromCurrencyCode': 'EUR', 'ToCurrencyCode': 'RON', 'RateValue': bad_value},
            {'FromCurrencyCode': 'USD', 'ToCurrencyCode': 'RON', 'RateValue': 4.5},
        ],
    }
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    rate_set = await make_client(mock_client).fetch(date(2026, 1, 15))

    assert rate_set.rate_for('EUR') is None
    assert rate_set.rate_for('USD') == Decimal('4.5')


@pytest.mark.asyncio
async def test_only_non_finite_rates_is_absent():
    payload = {
        'EffectiveDate': '2026-01-15',
        'MostRecentRateDate': '2026-01-15',
        'Rates': [
            {'FromCurrencyCode': 'EUR', 'ToCurrencyCode': 'RON', 'RateValue': float('nan')},
            {'FromCurrencyCode': 'GBP', 'ToCurrencyCode': 'RON', 'RateValue': float('inf')},
        ],
    }
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


@pytest.mark.asyncio
async def test_response_without_usable_rates_is_absent():
    payload = {'EffectiveDate': '2026-01-15', 'MostRecentRateDate': '2026-01-15', 'Rates': []}
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


# ============================================================================
# TEST: failures are normalised to None
# ============================================================================

@pytest.mark.asyncio
async def test_http_500_returns_none():
    mock_client = AsyncMock(spec=httpx.AsyncClient)

    error_response = Mock()
    error_response.status_code = 500
    error_response.text = 'Internal Server Error'

    mock_client.post.side_effect = httpx.HTTPStatusError(
        'Server error',
        request=Mock(),
        response=error_response
    )

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


@pytest.mark.asyncio
async def test_connection_error_returns_none():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.side_effect = httpx.ConnectError('Connection refused')

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


@pytest.mark.asyncio
async def test_invalid_json_returns_none():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_response = Mock()
    mock_response.raise_for_status = Mock()
    mock_response.json.side_effect = ValueError('Invalid JSON')
    mock_client.post.return_value = mock_response

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


@pytest.mark.asyncio
async def test_malformed_payload_returns_none():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response({'EffectiveDate': '2026-01-15'})

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


@pytest.mark.asyncio
async def test_non_numeric_rate_returns_none():
    payload = {
        'EffectiveDate': '2026-01-15',
        'Rates': [{'FromCurrencyCode': 'EUR', 'ToCurrencyCode': 'RON', 'RateValue': 'abc'}],
    }
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = ok_response(payload)

    assert await make_client(mock_client).fetch(date(2026, 1, 15)) is None


@pytest.mark.asyncio
async def test_non_responding_provider_times_out_within_budget():
    async def hang(*args, **kwargs):
        await asyncio.sleep(10)

    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.side_effect = hang

    client = make_client(mock_client, timeout=0.2)
    started = time.monotonic()
    result = await client.fetch(date(2026, 1, 15))
    elapsed = time.monotonic() - started

    assert result is None
    assert elapsed < 0.2 + 0.5


# ============================================================================
# TEST: configuration
# ============================================================================

@pytest.mark.asyncio
async def test_missing_api_key_raises_configuration_error():
    mock_client = AsyncMock(spec=httpx.AsyncClient)

    client = make_client(mock_client, api_key='')

    with pytest.raises(ConfigurationError) as exc_info:
        await client.fetch(date(2026, 1, 15))

    assert 'BONO_FOREX_API_KEY' in str(exc_info.value)
    mock_client.post.assert_not_called()


@pytest.mark.asyncio
async def test_close_releases_http_client():
    mock_client = AsyncMock(spec=httpx.AsyncClient)

    await make_client(mock_client).close()

    mock_client.aclose.assert_awaited_once()
