import hmac
from importlib.metadata import PackageNotFoundError, version as package_version

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import BasePermission
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import FuelType
from .serializers import (
    CatalogEntrySerializer,
    DistrictStationsSerializer,
    FuelTypePricesSerializer,
    RefreshResponseSerializer,
    SnapshotSerializer,
)
from .services import get_price_service


def get_version() -> str:
    try:
        return package_version('cygaz')
    except PackageNotFoundError:
        return '0.0.0'


class HasRefreshToken(BasePermission):
    """Allows the request only when X-TOKEN matches CYGAZ_SECRET"""

    message = "A valid X-TOKEN header is required"

    def has_permission(self, request, view):
        token = request.headers.get('X-TOKEN', '')
        return bool(token) and hmac.compare_digest(token.encode(), settings.CYGAZ_SECRET.encode())


class SnapshotView(APIView):
    """All cached stations, partitioned by district"""

    @extend_schema(
        responses={200: SnapshotSerializer},
        description="""
Current cache contents as of the last completed refresh.

Stations are keyed by their coordinates and carry one price per fuel type.
Stations whose area could not be matched to a district are not listed.
        """
    )
    def get(self, request):
        snapshot = get_price_service().get_snapshot()
        return Response(SnapshotSerializer(snapshot).data)


class DistrictListView(APIView):
    """Known districts with the area names currently mapped to them"""

    @extend_schema(responses={200: CatalogEntrySerializer(many=True)})
    def get(self, request):
        catalog = get_price_service().get_districts_catalog()
        return Response(CatalogEntrySerializer(catalog, many=True).data)


class DistrictStationsView(APIView):
    """Stations of a single district"""

    @extend_schema(
        responses={
            200: DistrictStationsSerializer,
            400: OpenApiResponse(description="Unknown district id"),
        },
    )
    def get(self, request, district_id):
        service = get_price_service()
        snapshot = service.get_snapshot()
        try:
            stations = service.get_district(district_id, snapshot)
        except ValueError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(DistrictStationsSerializer({
            'district': service.catalog.get(district_id),
            'updated_at': snapshot.updated_at,
            'stations': stations,
        }).data)


class FuelTypePricesView(APIView):
    """Stations selling one fuel type, cheapest first"""

    @extend_schema(
        parameters=[
            OpenApiParameter('district', str, description="Restrict to one district id"),
        ],
        responses={
            200: FuelTypePricesSerializer,
            400: OpenApiResponse(description="Unknown fuel type or district"),
        },
        description="`fuel_type` accepts the portal code (1-5) or an id such as `unlead_95`.",
    )
    def get(self, request, fuel_type):
        service = get_price_service()
        snapshot = service.get_snapshot()
        district_id = request.query_params.get('district') or None
        try:
            parsed = FuelType.parse(fuel_type)
            stations = service.get_fuel_type_prices(parsed, district_id, snapshot)
        except ValueError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(FuelTypePricesSerializer({
            'fuel_type': parsed.id,
            'label': parsed.label,
            'updated_at': snapshot.updated_at,
            'stations': stations,
        }).data)


class RefreshView(APIView):
    """Start a background refresh of the price cache"""

    permission_classes = [HasRefreshToken]

    @extend_schema(
        request=None,
        responses={
            202: RefreshResponseSerializer,
            403: OpenApiResponse(description="Missing or wrong X-TOKEN"),
        },
        description="Returns immediately. `started` is false when a refresh is already running.",
    )
    def patch(self, request):
        started = get_price_service().trigger_refresh()
        return Response({"started": started}, status=status.HTTP_202_ACCEPTED)


class HealthCheckView(APIView):
    """Health check endpoint"""

    @extend_schema(
        description="Verify API is running; `ready` is true once the first refresh has been published",
        responses={
            200: {
                "type": "object",
                "properties": {
                    "status": {"type": "string", "example": "healthy"},
                    "service": {"type": "string", "example": "cygaz"},
                    "version": {"type": "string", "example": "0.2.0"},
                    "ready": {"type": "boolean"},
                }
            }
        }
    )
    def get(self, request):
        return Response({
            "status": "healthy",
            "service": "cygaz",
            "version": get_version(),
            "ready": get_price_service().is_ready(),
        })


class ReadinessView(APIView):
    """503 until the cache has been filled once"""

    @extend_schema(responses={200: None, 503: None})
    def get(self, request):
        service = get_price_service()
        if not service.is_ready():
            return Response({"ready": False}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response({"ready": True, "updated_at": service.get_snapshot().updated_at})


class VersionView(APIView):

    @extend_schema(responses={200: {"type": "object", "properties": {"version": {"type": "string"}}}})
    def get(self, request):
        return Response({"version": get_version()})
