import json

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from prices.exceptions import UnknownFuelType
from prices.models import FuelType
from prices.serializers import SnapshotSerializer
from prices.services import PortalService, PriceService


class Command(BaseCommand):
    help = 'Scrape the petroleum prices portal once and print the merged result'

    def add_arguments(self, parser):
        parser.add_argument('--fuel-type', action='append', dest='fuel_types', default=None,
                            help='Fuel type code or id to fetch (repeatable, default all)')
        parser.add_argument('--keep-unresolved', action='store_true',
                            help='File stations with an unmapped area under "unknown"')
        parser.add_argument('--json', action='store_true', help='Print the snapshot as JSON')

    def handle(self, *args, **options):
        try:
            fuel_types = [FuelType.parse(value) for value in options['fuel_types'] or FuelType]
        except UnknownFuelType as e:
            raise CommandError(str(e))

        service = PriceService(
            portal=PortalService(),
            keep_unresolved=options['keep_unresolved'] or settings.CYGAZ_KEEP_UNRESOLVED,
            fuel_types=fuel_types,
        )

        self.stdout.write(f'Fetching {", ".join(f.id for f in fuel_types)}...')
        result = service.refresh()

        for fuel_type, count in result.fetched.items():
            if fuel_type in result.failed:
                self.stdout.write(self.style.WARNING(f'{fuel_type.id}: fetch failed'))
            else:
                self.stdout.write(f'{fuel_type.id}: {count} stations')
        self.stdout.write(f'{result.areas} area names mapped')

        if not result.published:
            raise CommandError('Every fuel type fetch failed, nothing to show')

        snapshot = service.get_snapshot()
        if options['json']:
            self.stdout.write(json.dumps(SnapshotSerializer(snapshot).data, ensure_ascii=False,
                                         indent=2, default=float))
            return

        for district in service.catalog.all(include_unknown=True):
            stations = snapshot.districts.get(district.id, {})
            if stations:
                self.stdout.write(f'{district.name_en}: {len(stations)} stations')

        self.stdout.write(
            self.style.SUCCESS(f'\nMerged {result.stations} stations in {result.duration:.1f}s')
        )
