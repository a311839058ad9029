from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class Bounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    northeast: GeoPoint
    southwest: GeoPoint
