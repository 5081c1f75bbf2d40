"""
Cache store: the only place that reads or writes the country cache.

Views and the refresh service talk to a CacheStore, never to the ORM
directly, so they can run against the in-memory store used in tests.
Rows cross this boundary as plain dicts shaped like CountrySerializer.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from typing import List

from django.db import DatabaseError, connection, transaction
from django.db.models import F

from . import utils
from .exceptions import StoreError
from .models import ApiStatus, Country
from .serializers import CountryRecordSerializer, CountrySerializer

logger = logging.getLogger(__name__)

# Columns overwritten on every upsert (name is the key)
UPSERT_FIELDS = [
    "capital", "region", "population", "currency_code",
    "exchange_rate", "estimated_gdp", "flag_url",
]


@dataclass
class UpsertResult:
    written: int = 0
    rejected: List[dict] = field(default_factory=list)


class CacheStore(ABC):

    @abstractmethod
    def ensure_schema(self):
        """Create the cache and status tables if they do not exist yet."""

    @abstractmethod
    def upsert_one(self, data):
        """Insert or fully overwrite the row whose name matches data['name']."""

    @abstractmethod
    def record_status(self, total_count):
        """Store the refresh count and time; return the time used."""

    @abstractmethod
    def get_status(self):
        pass

    @abstractmethod
    def get_by_name(self, name):
        pass

    @abstractmethod
    def list_countries(self, region=None, currency_code=None, sort_field=None, descending=False):
        pass

    @abstractmethod
    def top_by_gdp(self, limit=5):
        pass

    @abstractmethod
    def delete_by_name(self, name):
        """Delete the named row; return True if a row was removed."""

    def atomic(self):
        return nullcontext()

    def validate(self, records):
        """Split records into (valid dicts, rejection reports)."""
        valid, rejected = [], []
        for record in records:
            data = record.as_dict() if hasattr(record, "as_dict") else dict(record)
            serializer = CountryRecordSerializer(data=data)
            if serializer.is_valid():
                valid.append(dict(serializer.validated_data))
                continue
            details = serializer.errors.get("details", serializer.errors)
            logger.warning("Rejected country record %r: %s", data.get("name"), details)
            rejected.append({"name": data.get("name"), "details": details})
        return valid, rejected

    def upsert_all(self, records):
        """Validate then upsert every record, in order, as one unit of work."""
        valid, rejected = self.validate(records)
        with self.atomic():
            for data in valid:
                self.upsert_one(data)
        logger.info("Cached %d country records (%d rejected)", len(valid), len(rejected))
        return UpsertResult(written=len(valid), rejected=rejected)


@contextmanager
def translate_db_errors():
    try:
        yield
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


class DjangoCacheStore(CacheStore):
    """CacheStore backed by the Django ORM (MySQL or SQLite)."""

    models = (Country, ApiStatus)

    def ensure_schema(self):
        """
        Create any missing table directly through the schema editor.

        Tables created here are not recorded in django_migrations, so a
        database bootstrapped this way must be migrated once with
        `manage.py migrate --fake-initial`.
        """
        with translate_db_errors():
            existing = set(connection.introspection.table_names())
            missing = [m for m in self.models if m._meta.db_table not in existing]
            if not missing:
                return
            with connection.schema_editor() as editor:
                for model in missing:
                    logger.info("Creating table %s", model._meta.db_table)
                    editor.create_model(model)

    @contextmanager
    def atomic(self):
        with translate_db_errors(), transaction.atomic():
            yield

    def upsert_one(self, data):
        defaults = {name: data.get(name) for name in UPSERT_FIELDS}
        defaults["name"] = data["name"]
        with translate_db_errors(), transaction.atomic():
            Country.objects.update_or_create(name__iexact=data["name"], defaults=defaults)

    def record_status(self, total_count):
        now = utils.get_now()
        with translate_db_errors():
            ApiStatus.objects.update_or_create(
                pk=ApiStatus.SINGLETON_ID, defaults={"total_countries": total_count}
            )
            ApiStatus.objects.update_or_create(
                pk=ApiStatus.SINGLETON_ID, defaults={"last_refreshed_at": now}
            )
        return now

    def get_status(self):
        with translate_db_errors():
            status = ApiStatus.objects.filter(pk=ApiStatus.SINGLETON_ID).first()
        if status is None:
            return {"total_countries": 0, "last_refreshed_at": None}
        return {
            "total_countries": status.total_countries,
            "last_refreshed_at": status.last_refreshed_at,
        }

    def get_by_name(self, name):
        with translate_db_errors():
            country = Country.objects.filter(name__iexact=name).first()
        return CountrySerializer(country).data if country else None

    def list_countries(self, region=None, currency_code=None, sort_field=None, descending=False):
        qs = Country.objects.all()
        if region:
            qs = qs.filter(region__iexact=region)
        if currency_code:
            qs = qs.filter(currency_code__iexact=currency_code)

        if sort_field:
            column = F(sort_field)
            order = column.desc(nulls_last=True) if descending else column.asc(nulls_last=True)
            qs = qs.order_by(order, "name")
        else:
            qs = qs.order_by("name")

        with translate_db_errors():
            return list(CountrySerializer(qs, many=True).data)

    def top_by_gdp(self, limit=5):
        qs = Country.objects.filter(estimated_gdp__isnull=False).order_by("-estimated_gdp")[:limit]
        with translate_db_errors():
            return list(CountrySerializer(qs, many=True).data)

    def delete_by_name(self, name):
        with translate_db_errors():
            deleted, _ = Country.objects.filter(name__iexact=name).delete()
        return deleted > 0
