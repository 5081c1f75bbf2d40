"""
Fetch the raw inputs of a refresh: the country list and the USD rate table.

Both sources are queried concurrently and a refresh only proceeds when both
answered successfully; anything else surfaces as ExternalSourceError.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import requests
from django.conf import settings
from requests.exceptions import RequestException

from .exceptions import ExternalSourceError

logger = logging.getLogger(__name__)

COUNTRIES_SOURCE = "countries"
RATES_SOURCE = "exchange_rates"


@dataclass
class RawCountry:
    name: Optional[str]
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = 0
    currency_codes: List[Optional[str]] = field(default_factory=list)
    flag_url: Optional[str] = None

    @property
    def primary_currency(self):
        """Code of the first listed currency, or None when it is unusable."""
        if not self.currency_codes:
            return None
        return self.currency_codes[0] or None

    @classmethod
    def from_payload(cls, item):
        currencies = item.get("currencies") or []
        codes = []
        for currency in currencies:
            codes.append(currency.get("code") if isinstance(currency, dict) else None)
        return cls(
            name=item.get("name"),
            capital=item.get("capital") or None,
            region=item.get("region") or None,
            population=item.get("population") or 0,
            currency_codes=codes,
            flag_url=item.get("flag") or None,
        )


def decode_countries(payload) -> List[RawCountry]:
    if not isinstance(payload, list):
        raise ValueError("countries payload is not a list")
    return [RawCountry.from_payload(item) for item in payload if isinstance(item, dict)]


def decode_rates(payload) -> Dict[str, float]:
    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        raise ValueError("exchange rates payload has no 'rates' object")
    table = {}
    for code, value in rates.items():
        try:
            table[code] = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric rate %r for %s", value, code)
    return table


class CountryDataFetcher:
    """Single-attempt client for the two external sources."""

    def __init__(self, countries_url=None, rates_url=None, timeout=None, session=None):
        self.countries_url = countries_url or settings.COUNTRIES_API_URL
        self.rates_url = rates_url or settings.EXCHANGE_RATES_API_URL
        self.timeout = timeout if timeout is not None else settings.EXTERNAL_API_TIMEOUT
        self.session = session or requests.Session()

    def _get_json(self, source, url):
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except RequestException as exc:
            raise ExternalSourceError(source, str(exc)) from exc
        if not resp.ok:
            raise ExternalSourceError(source, f"{resp.status_code} {resp.reason}")
        try:
            return resp.json()
        except ValueError as exc:
            raise ExternalSourceError(source, f"invalid JSON: {exc}") from exc

    def fetch_countries(self):
        payload = self._get_json(COUNTRIES_SOURCE, self.countries_url)
        try:
            return decode_countries(payload)
        except ValueError as exc:
            raise ExternalSourceError(COUNTRIES_SOURCE, str(exc)) from exc

    def fetch_exchange_rates(self):
        payload = self._get_json(RATES_SOURCE, self.rates_url)
        try:
            return decode_rates(payload)
        except ValueError as exc:
            raise ExternalSourceError(RATES_SOURCE, str(exc)) from exc

    def fetch(self) -> Tuple[List[RawCountry], Dict[str, float]]:
        """Fetch both sources in parallel; fail as a whole if either fails."""
        logger.info("Fetching countries and exchange rates")
        with ThreadPoolExecutor(max_workers=2) as pool:
            countries_future = pool.submit(self.fetch_countries)
            rates_future = pool.submit(self.fetch_exchange_rates)
            countries = countries_future.result()
            rates = rates_future.result()
        logger.info("Fetched %d countries and %d exchange rates", len(countries), len(rates))
        return countries, rates
