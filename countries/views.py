import logging
import os

from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status
from django.http import FileResponse

from . import services, utils
from .exceptions import ExternalSourceError

logger = logging.getLogger(__name__)

ALLOWED_FILTERS = {
    "region": "region",
    "currency": "currency_code",
    "currency_code": "currency_code",
}
SORT_FIELDS = {
    "gdp": "estimated_gdp",
    "name": "name",
    "population": "population",
}


def validation_failed(details):
    return Response(
        {"error": "Validation failed", "details": details},
        status=status.HTTP_400_BAD_REQUEST,
    )


def internal_error(exc):
    logger.exception("Internal server error")
    return Response(
        {"error": "Internal server error", "message": str(exc)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def parse_sort(sort_param):
    """'gdp_desc' -> ('estimated_gdp', True); raises ValueError on bad input."""
    field, sep, direction = sort_param.lower().rpartition("_")
    if not sep or direction not in ("asc", "desc"):
        raise ValueError("invalid format (use <field>_asc or <field>_desc)")
    if field not in SORT_FIELDS:
        raise ValueError(f"{field} is not a valid sort field")
    return SORT_FIELDS[field], direction == "desc"


@api_view(['POST'])
def refresh_countries(request):
    """
    POST /countries/refresh
    Fetch countries and exchange rates, then upsert the cached data,
    update the status row and regenerate the summary image.
    """
    try:
        result = services.run_refresh()
    except ExternalSourceError as e:
        logger.error("External data source unavailable: %s", e)
        return Response(
            {"error": "External data source unavailable", "details": str(e)},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except Exception as e:
        return internal_error(e)

    return Response(
        {
            "message": "Refresh successful",
            "total_countries": result.total_countries,
            "last_refreshed_at": utils.to_iso(result.last_refreshed_at),
            "duration_seconds": result.duration_seconds,
            "errors": result.rejected[:5],  # show only first few
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
def list_countries(request):
    """
    GET /countries
    Filters:
      - region, currency (alias currency_code), exact match ignoring case
    Sorting:
      - ?sort=<field>_asc or <field>_desc, field in gdp, name, population
      - rows without a value for the field come last either way
    Default:
      - Ordered by name ascending.
    """
    filters = {}
    for key, value in request.GET.items():
        if key == "sort":
            continue
        if key not in ALLOWED_FILTERS:
            return validation_failed({key: "is not a valid filter"})
        if not value:
            return validation_failed({key: "is required"})
        filters[ALLOWED_FILTERS[key]] = value

    sort_field, descending = None, False
    sort_param = request.GET.get("sort")
    if sort_param:
        try:
            sort_field, descending = parse_sort(sort_param)
        except ValueError as e:
            return validation_failed({"sort": str(e)})

    try:
        data = services.get_store().list_countries(
            region=filters.get("region"),
            currency_code=filters.get("currency_code"),
            sort_field=sort_field,
            descending=descending,
        )
    except Exception as e:
        return internal_error(e)

    return Response(data)


@api_view(['GET', 'DELETE'])
def country_detail(request, name):
    """
    GET /countries/:name  -> return 404 JSON if not found
    DELETE /countries/:name -> delete, return 204 or 404
    """
    store = services.get_store()
    try:
        if request.method == 'GET':
            country = store.get_by_name(name)
            if country is None:
                return Response({"error": "Country not found"}, status=status.HTTP_404_NOT_FOUND)
            return Response(country)

        if not store.delete_by_name(name):
            return Response({"error": "Country not found"}, status=status.HTTP_404_NOT_FOUND)
    except Exception as e:
        return internal_error(e)

    logger.info("Deleted country %s", name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
def get_status(request):
    """
    GET /status -> { total_countries, last_refreshed_at }
    Defaults to { 0, null } until the first refresh.
    """
    try:
        current = services.get_store().get_status()
    except Exception as e:
        return internal_error(e)
    return Response({
        "total_countries": current["total_countries"],
        "last_refreshed_at": utils.to_iso(current["last_refreshed_at"]),
    })


@api_view(['GET'])
def get_summary_image(request):
    """
    GET /countries/image
    Serve the summary image generated by the last refresh.
    If not found, return a JSON error.
    """
    path = utils.get_summary_image_path()
    if not os.path.exists(path):
        return Response({"error": "Summary image not found"}, status=status.HTTP_404_NOT_FOUND)
    return FileResponse(open(path, 'rb'), content_type='image/png')
