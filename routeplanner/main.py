import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import aiohttp
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from . import __version__, config
from .exceptions import ConfigurationError, DegenerateInputError
from .models.airport import Airport
from .models.geo import GeoPoint
from .models.response import ItineraryPlan, ItineraryRequest, ModeRecommendation, RouteResponse
from .models.route import RouteRequest
from .services.airports import AirportDirectory, default_directory, nearest_airport
from .services.geo import distance_km, recommend_mode
from .services.itinerary import plan_itinerary
from .services.routing import RoutingService

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Config groups that may be changed at runtime over HTTP
PATCHABLE_CONFIG = {"fallback_behavior", "caching", "real_time_updates"}


def create_app(
    service: Optional[RoutingService] = None,
    directory: Optional[AirportDirectory] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with aiohttp.ClientSession() as session:
            if service is not None:
                routing = service
            else:
                routing = RoutingService(config.load_config(), session=session)
            config.check_environment(routing.config)
            app.state.routing = routing
            app.state.directory = directory
            yield

    app = FastAPI(
        title="Route Planner",
        description="Multi-modal routing with airport-aware flight legs and offline fallback",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    def get_routing(request: Request) -> RoutingService:
        return request.app.state.routing

    def get_directory(request: Request) -> AirportDirectory:
        try:
            directory = request.app.state.directory
            return directory if directory is not None else default_directory()
        except ConfigurationError as e:
            logger.error(f"Airport directory unavailable: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/")
    def health(routing: RoutingService = Depends(get_routing)):
        """Health check endpoint"""
        return {
            "status": "ok",
            "service": "Route Planner",
            "version": __version__,
            "providers": [p.value for p in routing.config.available_providers()],
        }

    @app.get("/health")
    def detailed_health(routing: RoutingService = Depends(get_routing)):
        """Detailed health check for monitoring"""
        return {
            "status": "healthy",
            "services": {
                name.value: "configured" if settings.api_key else "missing"
                for name, settings in routing.config.providers.items()
            },
            "cache_entries": len(routing.cache),
            "in_flight": len(routing.coordinator),
        }

    @app.post("/route", response_model=RouteResponse)
    async def route(req: RouteRequest, routing: RoutingService = Depends(get_routing)):
        logger.info(f"Route request: {req.mode.value} {req.origin} -> {req.destination}")
        return await routing.get_route(req)

    @app.post("/itinerary", response_model=ItineraryPlan)
    async def itinerary(
        req: ItineraryRequest,
        routing: RoutingService = Depends(get_routing),
        directory: AirportDirectory = Depends(get_directory),
    ):
        try:
            return await plan_itinerary(routing, req.origin, req.destination, req.mode, directory)
        except ConfigurationError as e:
            logger.error(f"Itinerary failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        except DegenerateInputError as e:
            logger.warning(f"Itinerary failed: {e}")
            raise HTTPException(status_code=422, detail=str(e))

    @app.get("/airports/nearest", response_model=Airport)
    def airports_nearest(
        lat: float = Query(ge=-90, le=90),
        lng: float = Query(ge=-180, le=180),
        directory: AirportDirectory = Depends(get_directory),
    ):
        try:
            return nearest_airport(GeoPoint(lat=lat, lng=lng), directory)
        except ConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/airports/search", response_model=List[Airport])
    def airports_search(q: str = "", directory: AirportDirectory = Depends(get_directory)):
        """Search airports by code, name or city for autocomplete."""
        return directory.search(q)

    @app.get("/recommend", response_model=ModeRecommendation)
    def recommend(
        origin_lat: float = Query(ge=-90, le=90),
        origin_lng: float = Query(ge=-180, le=180),
        destination_lat: float = Query(ge=-90, le=90),
        destination_lng: float = Query(ge=-180, le=180),
    ):
        """Suggest a transport mode from the straight-line distance."""
        distance = distance_km(
            GeoPoint(lat=origin_lat, lng=origin_lng),
            GeoPoint(lat=destination_lat, lng=destination_lng),
        )
        return recommend_mode(distance)

    @app.delete("/cache")
    def clear_cache(routing: RoutingService = Depends(get_routing)):
        routing.clear_cache()
        return {"status": "cleared"}

    @app.patch("/config")
    def update_config(partial: Dict[str, Any], routing: RoutingService = Depends(get_routing)):
        rejected = sorted(set(partial) - PATCHABLE_CONFIG)
        if rejected:
            logger.warning(f"Rejected config update for {rejected}")
            raise HTTPException(status_code=422, detail=f"Cannot update {', '.join(rejected)} at runtime")
        try:
            updated = routing.update_config(partial)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return updated.redacted()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
