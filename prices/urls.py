from django.urls import path
from .views import (
    DistrictListView,
    DistrictStationsView,
    FuelTypePricesView,
    HealthCheckView,
    ReadinessView,
    RefreshView,
    SnapshotView,
    VersionView,
)

urlpatterns = [
    path('prices/', SnapshotView.as_view(), name='price-snapshot'),
    path('prices/districts/', DistrictListView.as_view(), name='district-list'),
    path('prices/districts/<str:district_id>/', DistrictStationsView.as_view(), name='district-stations'),
    path('prices/fuel/<str:fuel_type>/', FuelTypePricesView.as_view(), name='fuel-type-prices'),
    path('prices/refresh/', RefreshView.as_view(), name='price-refresh'),
    path('health/', HealthCheckView.as_view(), name='health-check'),
    path('ready/', ReadinessView.as_view(), name='readiness'),
    path('version/', VersionView.as_view(), name='version'),
]
