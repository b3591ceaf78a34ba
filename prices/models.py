from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from typing import Mapping, NamedTuple, Optional, Tuple

from .exceptions import UnknownFuelType


class FuelType(IntEnum):
    """Petroleum products tracked by the portal, valued by their portal code"""

    UNLEAD_95 = 1
    UNLEAD_98 = 2
    DIESEL_HEAT = 3
    DIESEL_AUTO = 4
    KEROSENE = 5

    @property
    def id(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        return ''.join(part.capitalize() for part in self.name.split('_'))

    @classmethod
    def parse(cls, value) -> 'FuelType':
        """Accept a portal code, a snake-case id or an enum name"""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                raise UnknownFuelType(value)
        try:
            return cls[text.upper()]
        except KeyError:
            raise UnknownFuelType(value)


@dataclass(frozen=True, eq=False)
class District:
    """Administrative district; equal and hashed by id alone"""

    id: str
    name_en: str
    name_el: str

    @classmethod
    def from_names(cls, name_en: str, name_el: str) -> 'District':
        return cls(id=name_en.lower(), name_en=name_en, name_el=name_el)

    def __eq__(self, other) -> bool:
        if not isinstance(other, District):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.name_en


@dataclass(frozen=True)
class Area:
    """Area name as listed by the portal, in Greek and Latin script"""

    name_el: str
    name_en: str = ''


@dataclass(frozen=True)
class Price:
    fuel_type: FuelType
    value: Decimal


class StationKey(NamedTuple):
    """Station identity: the raw coordinate strings, compared as text.

    "34.6" and "34.60" are different stations. Do not parse these into
    numbers, the portal's own text is the identity.
    """

    latitude: str
    longitude: str


@dataclass(frozen=True)
class StationObservation:
    """One scraped table row: a station and a single fuel type reading"""

    brand: str
    offline: bool
    company: str
    address: str
    latitude: str
    longitude: str
    area: str
    price: Price

    @property
    def key(self) -> StationKey:
        return StationKey(self.latitude, self.longitude)


@dataclass(frozen=True)
class Station:
    """Merged station carrying at most one price per fuel type"""

    brand: str
    offline: bool
    company: str
    address: str
    latitude: str
    longitude: str
    area: str
    prices: Tuple[Price, ...] = ()
    district: Optional[District] = None

    @classmethod
    def from_observation(cls, observation: StationObservation,
                         district: Optional[District] = None) -> 'Station':
        return cls(
            brand=observation.brand,
            offline=observation.offline,
            company=observation.company,
            address=observation.address,
            latitude=observation.latitude,
            longitude=observation.longitude,
            area=observation.area,
            prices=(observation.price,),
            district=district,
        )

    @property
    def key(self) -> StationKey:
        return StationKey(self.latitude, self.longitude)

    def price_for(self, fuel_type: FuelType) -> Optional[Price]:
        for price in self.prices:
            if price.fuel_type == fuel_type:
                return price
        return None

    def with_price(self, price: Price) -> 'Station':
        """Return a copy with the reading added, unless its fuel type is already priced"""
        if self.price_for(price.fuel_type) is not None:
            return self
        return Station(
            brand=self.brand,
            offline=self.offline,
            company=self.company,
            address=self.address,
            latitude=self.latitude,
            longitude=self.longitude,
            area=self.area,
            prices=self.prices + (price,),
            district=self.district,
        )


@dataclass(frozen=True)
class Snapshot:
    """Published cache contents as of the last completed refresh"""

    updated_at: int
    updated_at_text: str
    districts: Mapping[str, Mapping[StationKey, Station]] = field(default_factory=dict)

    def station_count(self) -> int:
        return sum(len(stations) for stations in self.districts.values())
