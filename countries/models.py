from django.db import models


class Country(models.Model):
    # id: auto-generated
    name = models.CharField(max_length=255, unique=True)
    capital = models.CharField(max_length=255, null=True, blank=True)
    region = models.CharField(max_length=255, null=True, blank=True)
    population = models.BigIntegerField(default=0)
    # currency_code: null when the source listed no usable currency
    currency_code = models.CharField(max_length=10, null=True, blank=True)
    # exchange_rate: null when the code is missing from the rate table
    exchange_rate = models.FloatField(null=True, blank=True)
    # estimated_gdp: null only when the rate lookup failed
    estimated_gdp = models.FloatField(null=True, blank=True)
    flag_url = models.URLField(max_length=512, null=True, blank=True)

    class Meta:
        db_table = 'country_cache'
        verbose_name_plural = 'countries'
        ordering = ['name']

    def __str__(self):
        return self.name


class ApiStatus(models.Model):
    """Single row (id=1) describing the last refresh."""

    SINGLETON_ID = 1

    total_countries = models.IntegerField(default=0)
    last_refreshed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'api_status'
        verbose_name_plural = 'api status'

    def __str__(self):
        return f"{self.total_countries} countries @ {self.last_refreshed_at}"
