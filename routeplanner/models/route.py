from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .geo import Bounds, GeoPoint


class TransportMode(str, Enum):
    WALKING = "walking"
    CYCLING = "cycling"
    DRIVING = "driving"
    TRANSIT = "transit"
    FLIGHT = "flight"


# km/h, only used by the local estimator
MODE_SPEEDS_KMH = {
    TransportMode.WALKING: 5.0,
    TransportMode.CYCLING: 20.0,
    TransportMode.DRIVING: 50.0,
    TransportMode.TRANSIT: 30.0,
    TransportMode.FLIGHT: 500.0,
}


class RouteProvider(str, Enum):
    GOOGLE = "google"
    FALLBACK = "fallback"


class RouteRequest(BaseModel):
    id: Optional[str] = None  # cancellation / dedup key
    origin: GeoPoint
    destination: GeoPoint
    mode: TransportMode
    alternatives: bool = False


class Stop(BaseModel):
    name: str
    location: GeoPoint


class SegmentKind(str, Enum):
    GROUND = "ground"
    FLIGHT = "flight"


class Waypoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    location: GeoPoint
    airport_code: Optional[str] = None


class RouteSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    origin: Waypoint
    destination: Waypoint
    distance_m: int
    duration_s: int
    needs_realistic_rendering: bool = False


class ComposedRoute(BaseModel):
    segments: List[RouteSegment]
    total_distance_m: int
    total_duration_s: int


class RouteLeg(BaseModel):
    id: str
    mode: TransportMode
    distance_m: float
    duration_s: float
    polyline: str = ""
    start: GeoPoint
    end: GeoPoint
    start_address: Optional[str] = None
    end_address: Optional[str] = None


class Route(BaseModel):
    id: str
    legs: List[RouteLeg]
    distance_m: float
    duration_s: float
    start: GeoPoint
    end: GeoPoint
    bounds: Bounds
    overview_polyline: str = ""
    summary: str = ""
    copyrights: str = ""
    warnings: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    is_real_time: bool = False
    last_updated: datetime
    provider: RouteProvider
    attribution: str = ""
