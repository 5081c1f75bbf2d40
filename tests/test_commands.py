from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from countries import services
from tests.fakes import UnavailableFetcher


def test_refresh_command(monkeypatch, memory_store, stub_fetcher):
    monkeypatch.setattr(services, "get_store", lambda: memory_store)
    monkeypatch.setattr(services, "get_fetcher", lambda: stub_fetcher)
    out = StringIO()

    call_command("refresh_countries", "--seed", "3", stdout=out)

    assert "Cached 4 countries" in out.getvalue()
    assert memory_store.get_status()["total_countries"] == 4


def test_refresh_command_reports_source_failure(monkeypatch, memory_store):
    monkeypatch.setattr(services, "get_store", lambda: memory_store)
    monkeypatch.setattr(services, "get_fetcher", UnavailableFetcher)

    with pytest.raises(CommandError, match="countries"):
        call_command("refresh_countries")

    assert memory_store.rows == {}
