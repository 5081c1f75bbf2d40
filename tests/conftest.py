import pytest

from tests.fakes import InMemoryCacheStore, StubFetcher, raw


@pytest.fixture(autouse=True)
def summary_dir(settings, tmp_path):
    """Keep generated summary images out of the project tree."""
    settings.SUMMARY_IMAGE_DIR = str(tmp_path / "cache")
    settings.GDP_RANDOM_SEED = None
    return tmp_path / "cache"


@pytest.fixture
def sample_countries():
    return [
        raw("Testland", population=1000000, codes=["XYZ"], capital="Test City", region="Africa"),
        raw("NoCurrency", population=500, region="Europe"),
        raw("Ghostland", population=2000, codes=["QQQ"], region="Africa"),
        raw("Emptyland", population=0, codes=["XYZ"], region="Asia"),
    ]


@pytest.fixture
def sample_rates():
    return {"XYZ": 2.0, "USD": 1.0}


@pytest.fixture
def memory_store():
    return InMemoryCacheStore()


@pytest.fixture
def stub_fetcher(sample_countries, sample_rates):
    return StubFetcher(sample_countries, sample_rates)
