import logging
import os
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Sequence

import pandas as pd

from .. import config
from ..exceptions import ConfigurationError
from ..models.airport import Airport
from ..models.geo import GeoPoint
from .geo import distance_km

logger = logging.getLogger(__name__)

DATA_FILE_PATH = os.path.normpath(os.path.join(os.path.dirname(__file__), "..", "data", "airports.csv"))

# OurAirports column names -> ours
_OURAIRPORTS_COLUMNS = {
    "iata_code": "code",
    "name": "name",
    "municipality": "city",
    "iso_country": "country",
    "latitude_deg": "lat",
    "longitude_deg": "lng",
}


class AirportDirectory:
    """Read-only, ordered set of airports.

    Order matters: nearest-airport ties go to the airport listed first.
    """

    def __init__(self, airports: Sequence[Airport]):
        self._airports = tuple(airports)
        self._by_code: Dict[str, Airport] = {}
        for airport in self._airports:
            self._by_code.setdefault(airport.code.upper(), airport)

    def __iter__(self) -> Iterator[Airport]:
        return iter(self._airports)

    def __len__(self) -> int:
        return len(self._airports)

    def get(self, code: str) -> Optional[Airport]:
        return self._by_code.get((code or "").upper())

    def search(self, query: str, limit: int = 20) -> List[Airport]:
        """Code, then name, then city prefix matches, then substring matches."""
        q = (query or "").strip().lower()
        if len(q) < 2:
            return []

        def rank(airport: Airport) -> Optional[int]:
            code = airport.code.lower()
            if code == q:
                return 0
            if code.startswith(q):
                return 1
            if airport.name.lower().startswith(q):
                return 2
            if airport.city.lower().startswith(q):
                return 3
            if q in f"{code} {airport.name} {airport.city}".lower():
                return 4
            return None

        ranked = [(rank(a), len(a.name), a) for a in self._airports]
        hits = [item for item in ranked if item[0] is not None]
        hits.sort(key=lambda item: (item[0], item[1]))
        return [a for _, _, a in hits[:limit]]


def _normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    if "iata_code" in df.columns:
        # OurAirports dump: large airports with an IATA code only
        if "type" in df.columns:
            df = df[df["type"] == "large_airport"]
        df = df.rename(columns=_OURAIRPORTS_COLUMNS)
    df = df.dropna(subset=["code", "lat", "lng"])
    df = df[df["code"].astype(str).str.len() == 3]
    return df.fillna({"name": "", "city": "", "country": ""})


@lru_cache(maxsize=4)
def load_airports(path: Optional[str] = None) -> AirportDirectory:
    """Load the airport directory once per source file.

    Accepts the bundled ``code,name,city,country,lat,lng`` format or an
    OurAirports ``airports.csv``.
    """
    path = path or DATA_FILE_PATH
    if not os.path.exists(path):
        raise ConfigurationError(f"Airport data file not found: {path}")

    df = _normalize_frame(pd.read_csv(path, keep_default_na=False, na_values=[""]))
    airports = [
        Airport(
            code=str(row["code"]).upper(),
            name=str(row["name"]),
            city=str(row["city"]),
            country=str(row["country"]),
            location=GeoPoint(lat=float(row["lat"]), lng=float(row["lng"])),
        )
        for _, row in df.iterrows()
    ]
    logger.info(f"Loaded {len(airports)} airports from {path}")
    return AirportDirectory(airports)


def default_directory() -> AirportDirectory:
    return load_airports(config.AIRPORTS_CSV)


def nearest_airport(point: GeoPoint, directory: Optional[AirportDirectory] = None) -> Airport:
    """Closest airport by haversine distance; the first one listed wins ties."""
    directory = directory if directory is not None else default_directory()

    closest: Optional[Airport] = None
    min_distance = float("inf")
    for airport in directory:
        d = distance_km(point, airport.location)
        if closest is None or d < min_distance:
            closest = airport
            min_distance = d

    if closest is None:
        raise ConfigurationError("Airport directory is empty")
    return closest
