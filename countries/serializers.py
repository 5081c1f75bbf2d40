from rest_framework import serializers
from .models import Country


class CountrySerializer(serializers.ModelSerializer):
    class Meta:
        model = Country
        fields = [
            'id', 'name', 'capital', 'region', 'population',
            'currency_code', 'exchange_rate', 'estimated_gdp',
            'flag_url',
        ]


class CountryRecordSerializer(serializers.Serializer):
    """
    Gate applied to every aggregated record before it reaches the cache.
    - name is required and non-blank
    - population must be a non-negative integer
    - currency_code, exchange_rate and estimated_gdp may be null
      (see the null policy in countries.aggregation)
    """
    name = serializers.CharField(max_length=255, allow_null=True, allow_blank=True, trim_whitespace=False)
    capital = serializers.CharField(max_length=255, allow_null=True, allow_blank=True, required=False)
    region = serializers.CharField(max_length=255, allow_null=True, allow_blank=True, required=False)
    population = serializers.IntegerField(allow_null=True)
    currency_code = serializers.CharField(max_length=10, allow_null=True, required=False)
    exchange_rate = serializers.FloatField(allow_null=True, required=False)
    estimated_gdp = serializers.FloatField(allow_null=True, required=False)
    flag_url = serializers.CharField(max_length=512, allow_null=True, allow_blank=True, required=False)

    def validate(self, data):
        errors = {}

        if not (data.get("name") or "").strip():
            errors["name"] = "is required"
        population = data.get("population")
        if population is None:
            errors["population"] = "is required"
        elif population < 0:
            errors["population"] = "must be a non-negative number"
        for field in ("exchange_rate", "estimated_gdp"):
            value = data.get(field)
            if value is not None and value < 0:
                errors[field] = "must not be negative"

        if errors:
            raise serializers.ValidationError({
                "error": "Validation failed",
                "details": errors
            })

        return data
