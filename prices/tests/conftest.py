from decimal import Decimal

import pytest

from prices.districts import DistrictCatalog
from prices.exceptions import FetchError
from prices.models import Area, FuelType, Price, StationObservation


def make_observation(fuel_type=FuelType.UNLEAD_95, price='1.50', brand='STATION_A',
                     latitude='34.6', longitude='33.0', area='Lemesos', **kwargs):
    """Build a scraped row with sensible defaults"""
    return StationObservation(
        brand=brand,
        offline=kwargs.get('offline', False),
        company=kwargs.get('company', 'Station A Ltd'),
        address=kwargs.get('address', '1 Makariou Ave'),
        latitude=latitude,
        longitude=longitude,
        area=area,
        price=Price(fuel_type, Decimal(price)),
    )


class FakePortal:
    """Stands in for PortalService with canned stations and areas"""

    def __init__(self, stations=None, areas=None, failing_fuel_types=(), failing_districts=()):
        self.stations = stations or {}
        self.areas = areas or {}
        self.failing_fuel_types = set(failing_fuel_types)
        self.failing_districts = set(failing_districts)
        self.station_calls = []
        self.area_calls = []

    def fetch_stations(self, fuel_type):
        self.station_calls.append(fuel_type)
        if fuel_type in self.failing_fuel_types:
            raise FetchError(f"{fuel_type.id}: portal unavailable")
        return list(self.stations.get(fuel_type, []))

    def fetch_areas_for_district(self, district):
        self.area_calls.append(district.id)
        if district.id in self.failing_districts:
            raise FetchError(f"{district.id}: portal unavailable")
        return list(self.areas.get(district.id, []))


@pytest.fixture
def catalog():
    """Default five districts plus `unknown`."""
    return DistrictCatalog()


@pytest.fixture
def limassol(catalog):
    return catalog.get('limassol')


@pytest.fixture
def portal_areas():
    """Areas the fake portal reports, keyed by district id."""
    return {
        'limassol': [Area(name_el='Λεμεσός'), Area(name_el='Γερμασόγεια')],
        'nicosia': [Area(name_el='Λευκωσία'), Area(name_el='Στρόβολος', name_en='Strovolos')],
        'paphos': [Area(name_el='Πάφος')],
    }


@pytest.fixture
def portal_stations():
    """
    Two fuel types over three stations.

    STATION_A in Limassol sells both fuels, STATION_B in Nicosia sells only
    unleaded, and the Nowhere station has an area no district claims.
    """
    return {
        FuelType.UNLEAD_95: [
            make_observation(FuelType.UNLEAD_95, '1.50'),
            make_observation(FuelType.UNLEAD_95, '1.45', brand='STATION_B',
                             latitude='35.17', longitude='33.36', area='Strovolos'),
            make_observation(FuelType.UNLEAD_95, '1.40', brand='NOWHERE',
                             latitude='35.0', longitude='34.0', area='Nonexistent'),
        ],
        FuelType.DIESEL_AUTO: [
            make_observation(FuelType.DIESEL_AUTO, '1.30'),
        ],
    }


@pytest.fixture
def fake_portal(portal_stations, portal_areas):
    return FakePortal(stations=portal_stations, areas=portal_areas)
