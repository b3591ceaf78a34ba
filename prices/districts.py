from typing import Dict, Iterator, List, Optional

from .exceptions import InvalidDistrictId
from .models import District

UNKNOWN = District(id='unknown', name_en='Unknown', name_el='Αγνωστο')

DEFAULT_DISTRICTS = (
    District.from_names('Famagusta', 'Αμμόχωστος'),
    District.from_names('Larnaca', 'Λάρνακα'),
    District.from_names('Limassol', 'Λεμεσός'),
    District.from_names('Nicosia', 'Λευκωσία'),
    District.from_names('Paphos', 'Πάφος'),
)


class DistrictCatalog:
    """Fixed set of districts the portal is queried for, plus `unknown`"""

    def __init__(self, districts=DEFAULT_DISTRICTS, unknown: District = UNKNOWN):
        self.unknown = unknown
        self._districts: Dict[str, District] = {d.id: d for d in districts}

    def __iter__(self) -> Iterator[District]:
        return iter(self._districts.values())

    def __len__(self) -> int:
        return len(self._districts)

    def __contains__(self, district_id: str) -> bool:
        return self.is_valid(district_id)

    def is_valid(self, district_id: str) -> bool:
        return district_id in self._districts or district_id == self.unknown.id

    def get(self, district_id: str) -> Optional[District]:
        if district_id == self.unknown.id:
            return self.unknown
        return self._districts.get(district_id)

    def validate(self, district_id: str) -> District:
        district = self.get(district_id)
        if district is None:
            raise InvalidDistrictId(district_id)
        return district

    def all(self, include_unknown: bool = False) -> List[District]:
        districts = list(self._districts.values())
        if include_unknown:
            districts.append(self.unknown)
        return districts
