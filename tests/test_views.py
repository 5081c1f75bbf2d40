"""Route tests against the in-memory store, plus an end-to-end pass on the real database."""
import pytest
from rest_framework.test import APIClient

from countries import services
from countries.models import Country
from tests.fakes import BrokenCacheStore, InMemoryCacheStore, StubFetcher, UnavailableFetcher, raw


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def use_store(monkeypatch, memory_store):
    monkeypatch.setattr(services, "get_store", lambda: memory_store)
    return memory_store


@pytest.fixture
def use_fetcher(monkeypatch, stub_fetcher):
    def install(fetcher=stub_fetcher):
        monkeypatch.setattr(services, "get_fetcher", lambda: fetcher)
        return fetcher
    return install


def seed(store, *rows):
    for row in rows:
        data = {"population": 0, "region": None, "currency_code": None,
                "exchange_rate": None, "estimated_gdp": None}
        data.update(row)
        store.upsert_one(data)


class TestRefresh:

    def test_refresh_success(self, client, use_store, use_fetcher):
        use_fetcher()

        response = client.post("/countries/refresh")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Refresh successful"
        assert body["total_countries"] == 4
        assert body["last_refreshed_at"]
        assert body["errors"] == []
        assert use_store.schema_calls == 1

        testland = use_store.get_by_name("Testland")
        assert testland["currency_code"] == "XYZ"
        assert testland["exchange_rate"] == 2.0
        assert 500000000 <= testland["estimated_gdp"] <= 1000000000

        nocurrency = use_store.get_by_name("NoCurrency")
        assert nocurrency["currency_code"] is None
        assert nocurrency["exchange_rate"] is None
        assert nocurrency["estimated_gdp"] == 0

        ghost = use_store.get_by_name("Ghostland")
        assert ghost["exchange_rate"] is None
        assert ghost["estimated_gdp"] is None

    def test_refresh_twice_keeps_one_row_per_country(self, client, use_store, use_fetcher):
        use_fetcher()

        client.post("/countries/refresh")
        client.post("/countries/refresh")

        assert len(use_store.rows) == 4

    def test_seeded_refresh_is_reproducible(self, client, settings, use_store, use_fetcher):
        settings.GDP_RANDOM_SEED = 7
        use_fetcher()

        client.post("/countries/refresh")
        first = use_store.get_by_name("Testland")["estimated_gdp"]
        client.post("/countries/refresh")

        assert use_store.get_by_name("Testland")["estimated_gdp"] == first

    def test_rejected_records_are_reported(self, client, use_store, use_fetcher):
        use_fetcher(StubFetcher([raw("Goodland", population=3), raw(None, population=3)], {}))

        response = client.post("/countries/refresh")

        body = response.json()
        assert response.status_code == 200
        assert body["total_countries"] == 1
        assert body["errors"][0]["name"] is None
        assert list(use_store.rows) == ["goodland"]

    @pytest.mark.parametrize("source", ["countries", "exchange_rates"])
    def test_external_failure_returns_503_and_leaves_cache_alone(self, client, use_store, use_fetcher, source):
        seed(use_store, {"name": "Keepland", "population": 9, "estimated_gdp": 1.0})
        before = {k: dict(v) for k, v in use_store.rows.items()}
        use_fetcher(UnavailableFetcher(source=source))

        response = client.post("/countries/refresh")

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "External data source unavailable"
        assert source in body["details"]
        assert use_store.rows == before
        assert use_store.status is None

    def test_store_failure_returns_500(self, client, monkeypatch, use_fetcher):
        monkeypatch.setattr(services, "get_store", BrokenCacheStore)
        use_fetcher()

        response = client.post("/countries/refresh")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "connection lost"}

    def test_refresh_generates_image(self, client, use_store, use_fetcher):
        use_fetcher()
        client.post("/countries/refresh")

        response = client.get("/countries/image")

        assert response.status_code == 200
        assert response["Content-Type"] == "image/png"
        response.file_to_stream.close()

    def test_refresh_only_accepts_post(self, client, use_store):
        assert client.get("/countries/refresh").status_code == 405


class TestListCountries:

    @pytest.fixture
    def rows(self, use_store):
        seed(
            use_store,
            {"name": "Charlie", "region": "Europe", "currency_code": "EUR", "estimated_gdp": 10.0},
            {"name": "Alpha", "region": "Africa", "currency_code": "QQQ"},
            {"name": "Bravo", "region": "Africa", "currency_code": "NGN", "estimated_gdp": 30.0},
        )
        return use_store

    def test_default_sorted_by_name(self, client, rows):
        response = client.get("/countries")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Alpha", "Bravo", "Charlie"]

    def test_sort_by_gdp_desc(self, client, rows):
        response = client.get("/countries", {"sort": "gdp_desc"})

        assert [c["name"] for c in response.json()] == ["Bravo", "Charlie", "Alpha"]

    def test_sort_by_gdp_asc(self, client, rows):
        response = client.get("/countries", {"sort": "gdp_asc"})

        assert [c["name"] for c in response.json()] == ["Charlie", "Bravo", "Alpha"]

    def test_filters(self, client, rows):
        response = client.get("/countries", {"region": "Africa", "currency": "NGN"})

        assert [c["name"] for c in response.json()] == ["Bravo"]

    def test_empty_sort_falls_back_to_name_order(self, client, rows):
        response = client.get("/countries", {"sort": ""})

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Alpha", "Bravo", "Charlie"]

    def test_no_match_returns_empty_list(self, client, rows):
        response = client.get("/countries", {"region": "Oceania"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("params,field", [
        ({"sort": "gdp"}, "sort"),
        ({"sort": "color_desc"}, "sort"),
        ({"planet": "Mars"}, "planet"),
        ({"region": ""}, "region"),
    ])
    def test_bad_query_returns_400(self, client, rows, params, field):
        response = client.get("/countries", params)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert field in body["details"]


class TestCountryDetail:

    def test_get_by_name(self, client, use_store):
        seed(use_store, {"name": "Testland", "population": 1000000, "currency_code": "XYZ"})

        response = client.get("/countries/testland")

        assert response.status_code == 200
        assert response.json()["name"] == "Testland"

    def test_get_missing_returns_404(self, client, use_store):
        response = client.get("/countries/Nowhereland")

        assert response.status_code == 404
        assert response.json() == {"error": "Country not found"}

    def test_delete(self, client, use_store):
        seed(use_store, {"name": "Testland"})

        response = client.delete("/countries/Testland")

        assert response.status_code == 204
        assert use_store.rows == {}

    def test_delete_missing_returns_404(self, client, use_store):
        seed(use_store, {"name": "Testland"})

        response = client.delete("/countries/Nowhereland")

        assert response.status_code == 404
        assert len(use_store.rows) == 1


class TestStatusAndImage:

    def test_status_before_refresh(self, client, use_store):
        response = client.get("/status")

        assert response.json() == {"total_countries": 0, "last_refreshed_at": None}

    def test_status_after_refresh(self, client, use_store, use_fetcher):
        use_fetcher()
        refreshed = client.post("/countries/refresh").json()

        response = client.get("/status")

        assert response.json() == {
            "total_countries": 4,
            "last_refreshed_at": refreshed["last_refreshed_at"],
        }

    def test_image_missing_returns_404(self, client):
        response = client.get("/countries/image")

        assert response.status_code == 404
        assert response.json() == {"error": "Summary image not found"}

    def test_unknown_route_returns_json_404(self, client):
        response = client.get("/nothing-here")

        assert response.status_code == 404
        assert "error" in response.json()


@pytest.mark.django_db
class TestEndToEnd:

    def test_refresh_then_read_from_database(self, client, use_fetcher):
        use_fetcher()

        assert client.post("/countries/refresh").status_code == 200

        assert Country.objects.count() == 4
        detail = client.get("/countries/Testland").json()
        assert detail["currency_code"] == "XYZ"
        assert 500000000 <= detail["estimated_gdp"] <= 1000000000
        listed = client.get("/countries", {"sort": "gdp_desc"}).json()
        assert listed[-1]["name"] == "Ghostland"
        assert client.get("/status").json()["total_countries"] == 4

    def test_external_failure_leaves_database_unchanged(self, client, use_fetcher):
        Country.objects.create(name="Keepland", population=9, estimated_gdp=1.0)
        use_fetcher(UnavailableFetcher())

        response = client.post("/countries/refresh")

        assert response.status_code == 503
        assert list(Country.objects.values_list("name", "estimated_gdp")) == [("Keepland", 1.0)]

    def test_delete_nowhereland(self, client):
        Country.objects.create(name="Testland")

        response = client.delete("/countries/Nowhereland")

        assert response.status_code == 404
        assert Country.objects.count() == 1
