from pydantic import BaseModel, ConfigDict, Field

from .geo import GeoPoint


class Airport(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=3, max_length=3)  # IATA
    name: str
    city: str
    country: str
    location: GeoPoint
