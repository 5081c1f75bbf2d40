import os
import random
from datetime import datetime, timezone

from django.conf import settings

GDP_MULTIPLIER_MIN = 1000
GDP_MULTIPLIER_MAX = 2000
SUMMARY_IMAGE_NAME = "summary.png"


def make_rng(seed=None):
    """Random source for one refresh; pass a seed to make GDP figures reproducible."""
    return random.Random(seed)


def make_multiplier(rng):
    return rng.randint(GDP_MULTIPLIER_MIN, GDP_MULTIPLIER_MAX)


def get_cache_dir() -> str:
    """Return the absolute (and existing) directory holding generated artifacts."""
    path = os.path.abspath(settings.SUMMARY_IMAGE_DIR)
    os.makedirs(path, exist_ok=True)
    return path


def get_summary_image_path():
    """Return full path to the summary image in the writable cache."""
    return os.path.join(get_cache_dir(), SUMMARY_IMAGE_NAME)


def get_now():
    """Return current UTC datetime (aware)."""
    return datetime.now(timezone.utc)


def to_iso(value):
    return value.isoformat() if value else None
