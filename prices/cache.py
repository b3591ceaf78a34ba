import logging
import threading
import time
from datetime import datetime, timezone as dt_timezone
from types import MappingProxyType
from typing import List, Mapping, Optional

from django.utils import timezone

from .districts import DistrictCatalog
from .models import FuelType, Snapshot, Station, StationKey

logger = logging.getLogger(__name__)

UPDATED_AT_FORMAT = '%d/%m/%Y %H:%M:%S'

EMPTY_STATIONS: Mapping[StationKey, Station] = MappingProxyType({})


def format_updated_at(updated_at: int) -> str:
    """Epoch milliseconds as local time text, e.g. '18/10/2026 14:05:00'"""
    moment = datetime.fromtimestamp(updated_at / 1000, tz=dt_timezone.utc)
    return timezone.localtime(moment).strftime(UPDATED_AT_FORMAT)


class DistrictPriceCache:
    """District id -> stations, published as whole immutable snapshots.

    Readers take the current snapshot reference without locking. Writers are
    serialized and replace the timestamp and the stations together in a
    single assignment, so a reader sees either the old snapshot or the new
    one.
    """

    def __init__(self, catalog: DistrictCatalog):
        self.catalog = catalog
        self._write_lock = threading.Lock()
        self._snapshot = Snapshot(updated_at=0, updated_at_text='', districts=MappingProxyType({}))

    def read(self) -> Snapshot:
        return self._snapshot

    def replace(self, districts: Mapping[str, Mapping[StationKey, Station]]) -> Snapshot:
        frozen = MappingProxyType({
            district_id: MappingProxyType(dict(stations))
            for district_id, stations in districts.items()
            if stations
        })
        with self._write_lock:
            # never earlier than the snapshot being replaced
            updated_at = max(int(time.time() * 1000), self._snapshot.updated_at + 1)
            self._snapshot = Snapshot(
                updated_at=updated_at,
                updated_at_text=format_updated_at(updated_at),
                districts=frozen,
            )
            logger.info("Cache replaced: %d stations in %d districts",
                        self._snapshot.station_count(), len(frozen))
            return self._snapshot

    def query_district(self, district_id: str,
                       snapshot: Optional[Snapshot] = None) -> Mapping[StationKey, Station]:
        """Stations of one district; raises InvalidDistrictId outside the catalog"""
        self.catalog.validate(district_id)
        snapshot = snapshot or self._snapshot
        return snapshot.districts.get(district_id, EMPTY_STATIONS)

    def stations_for_fuel_type(self, fuel_type: FuelType, district_id: Optional[str] = None,
                               snapshot: Optional[Snapshot] = None) -> List[Station]:
        """Stations with a reading for `fuel_type`, cheapest first"""
        snapshot = snapshot or self._snapshot
        if district_id is not None:
            self.catalog.validate(district_id)
            partitions = [snapshot.districts.get(district_id, EMPTY_STATIONS)]
        else:
            partitions = list(snapshot.districts.values())

        priced = []
        for stations in partitions:
            for station in stations.values():
                price = station.price_for(fuel_type)
                if price is not None:
                    priced.append((price.value, station))
        priced.sort(key=lambda item: item[0])
        return [station for _, station in priced]
