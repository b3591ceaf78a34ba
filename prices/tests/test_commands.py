import json
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from prices.models import FuelType

from .conftest import FakePortal


@pytest.fixture
def patched_portal(fake_portal):
    with patch('prices.management.commands.refresh_prices.PortalService', return_value=fake_portal):
        yield fake_portal


def test_refresh_prices_summary(patched_portal):
    out = StringIO()
    call_command('refresh_prices', stdout=out)
    output = out.getvalue()

    assert 'unlead_95: 3 stations' in output
    assert 'Limassol: 1 stations' in output
    assert 'Nicosia: 1 stations' in output
    assert 'Merged 2 stations' in output


def test_refresh_prices_selected_fuel_types(patched_portal):
    out = StringIO()
    call_command('refresh_prices', '--fuel-type', 'diesel_auto', stdout=out)

    assert patched_portal.station_calls == [FuelType.DIESEL_AUTO]
    assert 'Merged 1 stations' in out.getvalue()


def test_refresh_prices_json(patched_portal):
    out = StringIO()
    call_command('refresh_prices', '--json', '--keep-unresolved', stdout=out)

    output = out.getvalue()
    data = json.loads(output[output.index('{'):])
    assert sorted(data['districts']) == ['limassol', 'nicosia', 'unknown']


def test_refresh_prices_unknown_fuel_type(patched_portal):
    with pytest.raises(CommandError):
        call_command('refresh_prices', '--fuel-type', 'lpg', stdout=StringIO())


def test_refresh_prices_all_failed(portal_areas):
    portal = FakePortal(areas=portal_areas, failing_fuel_types=set(FuelType))
    out = StringIO()
    with patch('prices.management.commands.refresh_prices.PortalService', return_value=portal):
        with pytest.raises(CommandError):
            call_command('refresh_prices', stdout=out)

    assert 'unlead_95: fetch failed' in out.getvalue()
