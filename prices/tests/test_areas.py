import pytest

from prices.areas import AreaResolver, find_district, transliterate
from prices.districts import UNKNOWN
from prices.models import Area

from .conftest import FakePortal


@pytest.mark.parametrize('greek, latin', [
    ('Λεμεσός', 'Lemesos'),
    ('Λευκωσία', 'Lefkosia'),
    ('Πάφος', 'Pafos'),
    ('Αμμόχωστος', 'Ammochostos'),
    ('Αγία Νάπα', 'Agia Napa'),
    ('Ντάλι', 'Dali'),
    ('Αγγλισίδες', 'Anglisides'),
    ('Ευρύχου', 'Evrychou'),
    ('ΛΕΜΕΣΟΣ', 'LEMESOS'),
    ('Κάτω Πολεμίδια', 'Kato Polemidia'),
])
def test_transliterate(greek, latin):
    assert transliterate(greek) == latin


def test_transliterate_leaves_latin_text_alone():
    assert transliterate('Paphos 8010') == 'Paphos 8010'


class TestFindDistrict:

    def test_exact_match(self, limassol):
        assert find_district('Lemesos', {'Lemesos': limassol}) == limassol

    def test_miss_returns_unknown(self, limassol):
        assert find_district('Nonexistent', {'Lemesos': limassol}) is UNKNOWN

    def test_lookup_is_case_sensitive(self, limassol):
        assert find_district('lemesos', {'Lemesos': limassol}) is UNKNOWN


class TestAreaResolver:
    """Area table built from per-district portal lookups."""

    def test_maps_both_scripts(self, catalog, fake_portal, limassol):
        resolver = AreaResolver(fake_portal, catalog)
        mapping = resolver.refresh()

        assert mapping['Λεμεσός'] == limassol
        assert mapping['Lemesos'] == limassol
        assert mapping['Germasogeia'] == limassol
        assert mapping['Strovolos'].id == 'nicosia'

    def test_queries_every_district(self, catalog, fake_portal):
        AreaResolver(fake_portal, catalog).refresh()
        assert sorted(fake_portal.area_calls) == sorted(d.id for d in catalog)

    def test_failed_district_contributes_nothing(self, catalog, portal_areas):
        portal = FakePortal(areas=portal_areas, failing_districts={'limassol'})
        mapping = AreaResolver(portal, catalog).refresh()

        assert 'Lemesos' not in mapping
        assert mapping['Lefkosia'].id == 'nicosia'

    def test_refresh_replaces_whole_table(self, catalog):
        portal = FakePortal(areas={'limassol': [Area(name_el='Λεμεσός')]})
        resolver = AreaResolver(portal, catalog)
        first = resolver.refresh()

        portal.areas = {'paphos': [Area(name_el='Πάφος')]}
        second = resolver.refresh()

        assert 'Lemesos' in first
        assert 'Lemesos' not in second
        assert resolver.mapping is second

    def test_keeps_previous_table_when_nothing_resolves(self, catalog, portal_areas):
        portal = FakePortal(areas=portal_areas)
        resolver = AreaResolver(portal, catalog)
        first = resolver.refresh()

        portal.failing_districts = {d.id for d in catalog}
        assert resolver.refresh() is first

    def test_mapping_is_read_only(self, catalog, fake_portal, limassol):
        mapping = AreaResolver(fake_portal, catalog).refresh()
        with pytest.raises(TypeError):
            mapping['Somewhere'] = limassol

    def test_areas_by_district(self, catalog, fake_portal):
        resolver = AreaResolver(fake_portal, catalog)
        resolver.refresh()

        grouped = resolver.areas_by_district()
        assert grouped['paphos'] == ['Pafos', 'Πάφος']
        assert 'famagusta' not in grouped
