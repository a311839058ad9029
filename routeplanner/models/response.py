from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .geo import GeoPoint
from .route import Route, RouteProvider, SegmentKind, Stop, TransportMode


class RouteStatus(str, Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    ZERO_RESULTS = "ZERO_RESULTS"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    REQUEST_DENIED = "REQUEST_DENIED"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class RouteResponse(BaseModel):
    status: RouteStatus
    routes: List[Route] = Field(default_factory=list)
    alternative_routes: List[Route] = Field(default_factory=list)
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    retryable: Optional[bool] = None
    provider: RouteProvider
    request_id: str
    timestamp: datetime


class ItineraryRequest(BaseModel):
    origin: Stop
    destination: Stop
    mode: TransportMode


class PlannedLeg(BaseModel):
    mode: TransportMode
    kind: SegmentKind
    path: List[GeoPoint]
    distance_m: float
    duration_s: float
    provider: Optional[RouteProvider] = None


class ItineraryPlan(BaseModel):
    mode: TransportMode
    legs: List[PlannedLeg]
    total_distance_m: float
    total_duration_s: float


class ModeRecommendation(BaseModel):
    mode: TransportMode
    reason: str
    confidence: float
