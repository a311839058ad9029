"""Raw provider payloads.

Each provider gets its own model tagged by ``provider``; they are converted to
the canonical ``RouteResponse`` as soon as they leave the adapter.
"""
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .geo import GeoPoint
from .route import TransportMode


class GoogleLatLng(BaseModel):
    lat: float
    lng: float


class GoogleValue(BaseModel):
    value: float
    text: Optional[str] = None


class GoogleBounds(BaseModel):
    northeast: GoogleLatLng
    southwest: GoogleLatLng


class GooglePolyline(BaseModel):
    points: str = ""


class GoogleLeg(BaseModel):
    distance: GoogleValue
    duration: GoogleValue
    start_location: GoogleLatLng
    end_location: GoogleLatLng
    start_address: Optional[str] = None
    end_address: Optional[str] = None


class GoogleRoute(BaseModel):
    summary: str = ""
    copyrights: str = ""
    warnings: List[str] = Field(default_factory=list)
    bounds: Optional[GoogleBounds] = None
    overview_polyline: GooglePolyline = Field(default_factory=GooglePolyline)
    legs: List[GoogleLeg] = Field(default_factory=list)


class GoogleDirectionsPayload(BaseModel):
    provider: Literal["google"] = "google"
    status: str
    error_message: Optional[str] = None
    routes: List[GoogleRoute] = Field(default_factory=list)


class FallbackEstimate(BaseModel):
    provider: Literal["fallback"] = "fallback"
    origin: GeoPoint
    destination: GeoPoint
    mode: TransportMode
    distance_km: float
    duration_s: int


ProviderPayload = Annotated[
    Union[GoogleDirectionsPayload, FallbackEstimate],
    Field(discriminator="provider"),
]
