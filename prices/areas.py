import logging
import threading
import unicodedata
from types import MappingProxyType
from typing import Dict, List, Mapping

from .districts import UNKNOWN, DistrictCatalog
from .exceptions import FetchError
from .models import Area, District

logger = logging.getLogger(__name__)

# ELOT 743 transliteration, lowercase forms
GREEK_LETTERS = {
    'α': 'a', 'β': 'v', 'γ': 'g', 'δ': 'd', 'ε': 'e', 'ζ': 'z', 'η': 'i',
    'θ': 'th', 'ι': 'i', 'κ': 'k', 'λ': 'l', 'μ': 'm', 'ν': 'n', 'ξ': 'x',
    'ο': 'o', 'π': 'p', 'ρ': 'r', 'σ': 's', 'ς': 's', 'τ': 't', 'υ': 'y',
    'φ': 'f', 'χ': 'ch', 'ψ': 'ps', 'ω': 'o',
}
WORD_INITIAL_DIGRAPHS = {'μπ': 'b', 'ντ': 'd', 'γκ': 'g'}
MEDIAL_DIGRAPHS = {'μπ': 'mp', 'ντ': 'nt', 'γκ': 'gk', 'γγ': 'ng', 'ου': 'ou'}
UPSILON_DIPHTHONGS = ('αυ', 'ευ', 'ηυ')
VOICELESS = set('θκξπσςτφχψ')
DIAERESIS = '\u0308'


def _decompose(text: str):
    """Split into (base letter, has diaeresis) pairs, dropping stress marks"""
    letters = []
    for char in unicodedata.normalize('NFD', text):
        if unicodedata.combining(char):
            if char == DIAERESIS and letters:
                letters[-1] = (letters[-1][0], True)
            continue
        letters.append((char, False))
    return letters


def _is_greek(char: str) -> bool:
    return char.lower() in GREEK_LETTERS


def _match_case(piece: str, chunk, following) -> str:
    first = chunk[0][0]
    if not first.isupper():
        return piece
    if len(chunk) > 1:
        all_caps = chunk[1][0].isupper()
    else:
        all_caps = following is not None and following[0].isupper()
    return piece.upper() if all_caps else piece[0].upper() + piece[1:]


def transliterate(text: str) -> str:
    """Greek to Latin script, keeping letter case; other characters pass through.

    >>> transliterate('Λευκωσία')
    'Lefkosia'
    """
    letters = _decompose(text)
    out = []
    i = 0
    while i < len(letters):
        char = letters[i][0]
        lower = char.lower()
        if lower not in GREEK_LETTERS:
            out.append(char)
            i += 1
            continue

        nxt = letters[i + 1] if i + 1 < len(letters) else None
        pair = lower + nxt[0].lower() if nxt is not None and not nxt[1] else ''
        size = 2
        if pair in UPSILON_DIPHTHONGS:
            after = letters[i + 2][0].lower() if i + 2 < len(letters) else ''
            voiced = _is_greek(after) and after not in VOICELESS
            piece = GREEK_LETTERS[lower] + ('v' if voiced else 'f')
        elif pair in WORD_INITIAL_DIGRAPHS and (i == 0 or not _is_greek(letters[i - 1][0])):
            piece = WORD_INITIAL_DIGRAPHS[pair]
        elif pair in MEDIAL_DIGRAPHS:
            piece = MEDIAL_DIGRAPHS[pair]
        else:
            piece = GREEK_LETTERS[lower]
            size = 1

        following = letters[i + size] if i + size < len(letters) else None
        out.append(_match_case(piece, letters[i:i + size], following))
        i += size
    return ''.join(out)


def find_district(area: str, mapping: Mapping[str, District],
                  unknown: District = UNKNOWN) -> District:
    """Exact, case-sensitive lookup of an area name; `unknown` on a miss"""
    return mapping.get(area, unknown)


class AreaResolver:
    """Owns the area -> district lookup table and rebuilds it from the portal.

    The table is never edited in place: each pass builds a new dict and
    swaps it in, so `mapping` always returns one complete pass.
    """

    def __init__(self, client, catalog: DistrictCatalog):
        self.client = client
        self.catalog = catalog
        self._lock = threading.Lock()
        self._mapping: Mapping[str, District] = MappingProxyType({})

    @property
    def mapping(self) -> Mapping[str, District]:
        return self._mapping

    def resolve_districts(self) -> Dict[str, District]:
        """Ask the portal for each district's areas; failed districts add nothing"""
        mapping: Dict[str, District] = {}
        for district in self.catalog:
            try:
                areas: List[Area] = self.client.fetch_areas_for_district(district)
            except FetchError as e:
                logger.warning("Could not fetch areas for %s: %s", district.id, e)
                continue
            except Exception:
                logger.exception("Unexpected error fetching areas for %s", district.id)
                continue

            for area in areas:
                if not area.name_el:
                    continue
                mapping[area.name_el] = district
                mapping[area.name_en or transliterate(area.name_el)] = district
            logger.debug("Resolved %d areas for %s", len(areas), district.id)
        return mapping

    def refresh(self) -> Mapping[str, District]:
        mapping = self.resolve_districts()
        with self._lock:
            if not mapping and self._mapping:
                logger.warning("No areas resolved, keeping the previous %d entries",
                               len(self._mapping))
                return self._mapping
            self._mapping = MappingProxyType(mapping)
            logger.info("Area mapping rebuilt with %d entries", len(mapping))
            return self._mapping

    def areas_by_district(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for area, district in self._mapping.items():
            grouped.setdefault(district.id, []).append(area)
        return {district_id: sorted(areas) for district_id, areas in grouped.items()}
