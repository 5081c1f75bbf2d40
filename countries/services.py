"""
The refresh pipeline: fetch -> aggregate -> cache -> status -> summary image.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from django.conf import settings
from django.utils.module_loading import import_string

from . import utils
from .aggregation import aggregate
from .fetcher import CountryDataFetcher
from .summary import SummaryRenderer

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    total_countries: int
    last_refreshed_at: datetime
    rejected: List[dict] = field(default_factory=list)
    duration_seconds: float = 0.0


def get_store():
    return import_string(settings.COUNTRIES_CACHE_STORE)()


def get_fetcher():
    return CountryDataFetcher()


def get_renderer():
    return SummaryRenderer()


def run_refresh(fetcher=None, store=None, renderer=None, rng=None):
    """
    Run one full refresh. ExternalSourceError from the fetch step propagates
    before anything is written; StoreError aborts the (transactional) upsert.
    """
    start_time = time.time()
    fetcher = fetcher or get_fetcher()
    store = store or get_store()
    renderer = renderer or get_renderer()
    if rng is None:
        rng = utils.make_rng(settings.GDP_RANDOM_SEED)

    countries, rates = fetcher.fetch()
    records = aggregate(countries, rates, rng=rng)

    store.ensure_schema()
    result = store.upsert_all(records)
    refreshed_at = store.record_status(result.written)

    # Data is committed at this point; a failed image must not fail the refresh.
    try:
        renderer.render(store, refreshed_at)
    except OSError:
        logger.exception("Failed to generate or save summary image")

    duration = round(time.time() - start_time, 2)
    logger.info("Refresh finished: %d countries in %.2fs", result.written, duration)
    return RefreshResult(
        total_countries=result.written,
        last_refreshed_at=refreshed_at,
        rejected=result.rejected,
        duration_seconds=duration,
    )
