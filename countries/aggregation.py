"""
Join raw countries to exchange rates and derive the estimated GDP.

estimated_gdp = population * random(1000..2000) / exchange_rate

Null policy: a country whose currency code is missing from the rate table
keeps exchange_rate and estimated_gdp as None. Every other case without a
computable figure (no currency, zero population, zero rate) stores 0.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from . import utils

logger = logging.getLogger(__name__)


@dataclass
class CountryRecord:
    name: Optional[str]
    capital: Optional[str]
    region: Optional[str]
    population: int
    currency_code: Optional[str]
    exchange_rate: Optional[float]
    estimated_gdp: Optional[float]
    flag_url: Optional[str]

    def as_dict(self):
        return asdict(self)


def estimate_gdp(population, rate, rng):
    if population > 0 and rate != 0:
        return population * utils.make_multiplier(rng) / rate
    return 0


def build_record(country, rates, rng):
    population = country.population or 0
    currency_code = country.primary_currency
    exchange_rate = None
    estimated_gdp = None

    if currency_code:
        if currency_code in rates:
            exchange_rate = rates[currency_code]
            estimated_gdp = estimate_gdp(population, exchange_rate, rng)
        else:
            logger.warning("Rate not found for currency: %s (%s)", currency_code, country.name)
    else:
        estimated_gdp = 0

    return CountryRecord(
        name=country.name,
        capital=country.capital,
        region=country.region,
        population=population,
        currency_code=currency_code,
        exchange_rate=exchange_rate,
        estimated_gdp=estimated_gdp,
        flag_url=country.flag_url,
    )


def aggregate(countries, rates, rng=None):
    """Return one CountryRecord per input country, in input order."""
    if rng is None:
        rng = utils.make_rng()
    return [build_record(country, rates, rng) for country in countries]
