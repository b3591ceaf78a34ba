import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, NamedTuple, Optional, Tuple
from urllib.parse import parse_qs, urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from django.conf import settings

from .areas import AreaResolver
from .cache import DistrictPriceCache
from .districts import DistrictCatalog
from .exceptions import FetchError
from .merge import merge_observations
from .models import Area, District, FuelType, Price, Snapshot, Station, StationObservation

logger = logging.getLogger(__name__)

# The portal rejects modern browser user agents
USER_AGENT = 'Mozilla/4.0 (compatible; MSIE 8.0; Windows NT 6.1; Trident/4.0)'
TOKEN_FIELD = '__RequestVerificationToken'
PRICES_TABLE_SELECTOR = '#petroleumPriceDetailsFootable'
OFFLINE_CLASS = 'isOffLine'


class PortalService:
    """Scrapes the petroleum prices portal"""

    def __init__(self, endpoint: Optional[str] = None, areas_endpoint: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.endpoint = endpoint or settings.CYGAZ_PORTAL_ENDPOINT
        self.areas_endpoint = areas_endpoint or settings.CYGAZ_AREAS_ENDPOINT
        self.timeout = timeout or settings.CYGAZ_HTTP_TIMEOUT
        self.headers = {'User-Agent': USER_AGENT}

    def fetch_stations(self, fuel_type: FuelType) -> List[StationObservation]:
        """All stations listing a price for one fuel type"""
        with requests.Session() as session:
            try:
                response = session.get(self.endpoint, headers=self.headers, timeout=self.timeout)
                response.raise_for_status()
                token = self._extract_token(response.text)

                form_data = {
                    TOKEN_FIELD: token,
                    'Entity.StationCityEnum': 'All',
                    'Entity.PetroleumType': str(fuel_type.value),
                    'Entity.StationDistrict': '',
                }
                response = session.post(self.endpoint, data=form_data, headers=self.headers,
                                        timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise FetchError(f"{fuel_type.id}: {e}") from e

        return self._parse_stations(response.text, fuel_type)

    def fetch_areas_for_district(self, district: District) -> List[Area]:
        params = {'district': district.name_en}
        try:
            response = requests.get(self.areas_endpoint, params=params, headers=self.headers,
                                    timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise FetchError(f"{district.id}: {e}") from e
        except ValueError as e:
            raise FetchError(f"{district.id}: invalid areas payload") from e

        if not isinstance(data, list):
            raise FetchError(f"{district.id}: expected a list of areas")

        areas = []
        for item in data:
            if not isinstance(item, dict):
                continue
            name_el = (item.get('Value') or item.get('name_el') or '').strip()
            if name_el:
                areas.append(Area(name_el=name_el, name_en=(item.get('name_en') or '').strip()))
        return areas

    @staticmethod
    def _extract_token(html: str) -> str:
        soup = BeautifulSoup(html, 'html.parser')
        token_input = soup.select_one(f'input[name="{TOKEN_FIELD}"]')
        if token_input is None or not token_input.get('value'):
            raise FetchError("Request verification token not found")
        return token_input['value']

    def _parse_stations(self, html: str, fuel_type: FuelType) -> List[StationObservation]:
        soup = BeautifulSoup(html, 'html.parser')
        table = soup.select_one(PRICES_TABLE_SELECTOR)
        if table is None:
            raise FetchError(f"{fuel_type.id}: price table not found")

        stations = []
        for row in table.select('tbody tr'):
            cells = row.find_all('td')
            if len(cells) < 5:
                continue
            try:
                stations.append(self._parse_row(cells, fuel_type))
            except (ValueError, IndexError, KeyError, InvalidOperation) as e:
                logger.warning("Skipping malformed %s row: %s", fuel_type.id, e)
        return stations

    def _parse_row(self, cells, fuel_type: FuelType) -> StationObservation:
        brand, company, address, area, price = cells[:5]
        address_text, latitude, longitude = self._extract_address(address)
        value = Decimal(price.get_text(strip=True).replace(',', '.'))
        if not value.is_finite():
            raise ValueError(f"non-finite price {value}")
        return StationObservation(
            brand=brand.get_text(strip=True),
            offline=OFFLINE_CLASS in (brand.get('class') or []),
            company=company.get_text(strip=True),
            address=address_text,
            latitude=latitude,
            longitude=longitude,
            area=area.get_text(strip=True),
            price=Price(fuel_type, value),
        )

    def _extract_address(self, cell) -> Tuple[str, str, str]:
        """Address text and the raw coordinate strings from the map link"""
        link = cell.find('a')
        if link is None or not link.get('href'):
            raise ValueError("address link missing")

        query = parse_qs(urlparse(urljoin(self.endpoint, link['href'])).query)
        value = query['coordinates'][0]
        coordinates = value.split(',')
        if len(coordinates) == 1:
            coordinates = value.split(' ')
        if len(coordinates) < 2:
            raise ValueError(f"unparseable coordinates {value!r}")
        return link.get_text(strip=True), coordinates[0].strip(), coordinates[1].strip()


class CatalogEntry(NamedTuple):
    district: District
    areas: List[str]


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle"""

    fetched: Dict[FuelType, int] = field(default_factory=dict)
    failed: List[FuelType] = field(default_factory=list)
    areas: int = 0
    stations: int = 0
    published: bool = False
    duration: float = 0.0


class PriceService:
    """Runs refresh cycles and answers reads from the district cache"""

    def __init__(self, portal=None, catalog: Optional[DistrictCatalog] = None,
                 cache: Optional[DistrictPriceCache] = None,
                 resolver: Optional[AreaResolver] = None,
                 keep_unresolved: bool = False,
                 fuel_types=tuple(FuelType)):
        self.portal = portal if portal is not None else PortalService()
        self.catalog = catalog if catalog is not None else DistrictCatalog()
        self.cache = cache or DistrictPriceCache(self.catalog)
        self.resolver = resolver or AreaResolver(self.portal, self.catalog)
        self.keep_unresolved = keep_unresolved
        self.fuel_types = tuple(fuel_types)
        self._refresh_lock = threading.Lock()
        self._ready = threading.Event()

    @classmethod
    def from_settings(cls) -> 'PriceService':
        return cls(portal=PortalService(), keep_unresolved=settings.CYGAZ_KEEP_UNRESOLVED)

    def refresh(self) -> Optional[RefreshResult]:
        """Run one cycle now; returns None if another cycle is in flight"""
        if not self._refresh_lock.acquire(blocking=False):
            logger.info("Refresh already running, skipping")
            return None
        try:
            return self._run_cycle()
        finally:
            self._refresh_lock.release()

    def trigger_refresh(self) -> bool:
        """Start a cycle in the background; False if one is already running"""
        if not self._refresh_lock.acquire(blocking=False):
            return False

        def run():
            try:
                self._run_cycle()
            except Exception:
                logger.exception("Background refresh failed")
            finally:
                self._refresh_lock.release()

        threading.Thread(target=run, name='cygaz-refresh', daemon=True).start()
        return True

    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def is_ready(self) -> bool:
        return self._ready.is_set()

    def _run_cycle(self) -> RefreshResult:
        started = time.monotonic()
        result = RefreshResult()

        mapping = self.resolver.refresh()
        result.areas = len(mapping)

        observations = self._fetch_all(result)
        if len(result.failed) == len(self.fuel_types):
            logger.error("Every fuel type fetch failed, keeping the previous snapshot")
            result.duration = time.monotonic() - started
            return result

        merged = merge_observations(
            [observations[fuel_type] for fuel_type in self.fuel_types],
            mapping,
            keep_unresolved=self.keep_unresolved,
            unknown=self.catalog.unknown,
        )
        snapshot = self.cache.replace(merged)
        self._ready.set()

        result.stations = snapshot.station_count()
        result.published = True
        result.duration = time.monotonic() - started
        logger.info("Refresh finished in %.1fs: %d stations, failed fuel types: %s",
                    result.duration, result.stations,
                    ', '.join(f.id for f in result.failed) or 'none')
        return result

    def _fetch_all(self, result: RefreshResult) -> Dict[FuelType, List[StationObservation]]:
        """Fetch every fuel type in parallel; a failure counts as no stations"""
        observations: Dict[FuelType, List[StationObservation]] = {}
        with ThreadPoolExecutor(max_workers=max(1, len(self.fuel_types)),
                                thread_name_prefix='cygaz-fetch') as executor:
            futures = {
                fuel_type: executor.submit(self.portal.fetch_stations, fuel_type)
                for fuel_type in self.fuel_types
            }
            for fuel_type, future in futures.items():
                try:
                    observations[fuel_type] = future.result()
                except FetchError as e:
                    logger.warning("Fetching %s failed: %s", fuel_type.id, e)
                    observations[fuel_type] = []
                    result.failed.append(fuel_type)
                except Exception:
                    logger.exception("Unexpected error fetching %s", fuel_type.id)
                    observations[fuel_type] = []
                    result.failed.append(fuel_type)
                else:
                    logger.debug("Found %d stations for %s",
                                 len(observations[fuel_type]), fuel_type.id)
                result.fetched[fuel_type] = len(observations[fuel_type])
        return observations

    def get_snapshot(self) -> Snapshot:
        return self.cache.read()

    def get_district(self, district_id: str, snapshot: Optional[Snapshot] = None) -> List[Station]:
        return list(self.cache.query_district(district_id, snapshot).values())

    def get_fuel_type_prices(self, fuel_type: FuelType, district_id: Optional[str] = None,
                             snapshot: Optional[Snapshot] = None) -> List[Station]:
        return self.cache.stations_for_fuel_type(fuel_type, district_id, snapshot)

    def get_districts_catalog(self) -> List[CatalogEntry]:
        areas = self.resolver.areas_by_district()
        return [
            CatalogEntry(district, areas.get(district.id, []))
            for district in self.catalog.all(include_unknown=self.keep_unresolved)
        ]


_default_service: Optional[PriceService] = None
_default_lock = threading.Lock()


def get_price_service() -> PriceService:
    """Process-wide service used by the HTTP views and the scheduler"""
    global _default_service
    with _default_lock:
        if _default_service is None:
            _default_service = PriceService.from_settings()
        return _default_service
