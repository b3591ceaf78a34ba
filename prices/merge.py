import logging
from itertools import chain
from typing import Dict, Iterable, List, Mapping

from .areas import find_district
from .districts import UNKNOWN
from .models import District, Station, StationKey, StationObservation

logger = logging.getLogger(__name__)

DistrictStations = Dict[str, Dict[StationKey, Station]]


def merge_observations(
    observations_by_fuel_type: Iterable[List[StationObservation]],
    mapping: Mapping[str, District],
    keep_unresolved: bool = False,
    unknown: District = UNKNOWN,
) -> DistrictStations:
    """Fold per-fuel-type scrapes into one station per coordinate pair, per district.

    `mapping` must be the snapshot taken once for the whole cycle. Stations
    whose area is not in it are dropped unless `keep_unresolved` is set, in
    which case they are filed under the `unknown` district. Within a station
    the first reading seen for a fuel type wins.
    """
    merged: DistrictStations = {}
    dropped = 0

    for observation in chain.from_iterable(observations_by_fuel_type):
        district = find_district(observation.area, mapping, unknown)
        if district == unknown and not keep_unresolved:
            dropped += 1
            continue

        stations = merged.setdefault(district.id, {})
        key = observation.key
        existing = stations.get(key)
        if existing is None:
            stations[key] = Station.from_observation(observation)
        else:
            stations[key] = existing.with_price(observation.price)

    if dropped:
        logger.info("Dropped %d observations with an unmapped area", dropped)
    return merged
