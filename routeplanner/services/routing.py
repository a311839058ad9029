"""Route orchestration: cache, primary provider, local fallback."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp

from ..exceptions import (
    InvalidRequest,
    MissingCredential,
    NoRoutesFound,
    ProviderError,
    ServiceUnavailable,
    describe_error,
)
from ..models.config import RoutingConfig
from ..models.providers import ProviderPayload
from ..models.response import RouteResponse, RouteStatus
from ..models.route import RouteProvider, RouteRequest
from .cache import RouteCache, cache_key
from .coordinator import TIMED_OUT, CancellationHandle, RequestCoordinator
from .providers import FallbackEstimator, GoogleDirectionsProvider, new_id, to_route_response

logger = logging.getLogger(__name__)


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _error_status(error: ProviderError) -> RouteStatus:
    if error.status in RouteStatus.__members__:
        return RouteStatus(error.status)
    if isinstance(error, NoRoutesFound):
        return RouteStatus.ZERO_RESULTS
    if isinstance(error, InvalidRequest):
        return RouteStatus.INVALID_REQUEST
    if isinstance(error, MissingCredential):
        return RouteStatus.REQUEST_DENIED
    return RouteStatus.UNKNOWN_ERROR


class RoutingService:
    """Entry point for route requests.

    The cache, request coordinator and providers are owned by the instance
    (pass your own to share or inspect them). The primary provider is tried
    first; any failure falls back to a local straight-line estimate.

    ``session`` is shared by every provider built here. Without one, each
    provider call opens and closes its own.
    """

    def __init__(
        self,
        config: Optional[RoutingConfig] = None,
        cache: Optional[RouteCache] = None,
        coordinator: Optional[RequestCoordinator] = None,
        provider=None,
        estimator: Optional[FallbackEstimator] = None,
        retry_backoff: float = 0.5,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or RoutingConfig()
        self.session = session
        if cache is None:
            cache = RouteCache(
                ttl_seconds=self.config.caching.ttl_minutes * 60,
                max_size=self.config.caching.max_cache_size,
            )
        self.cache = cache
        self.coordinator = coordinator if coordinator is not None else RequestCoordinator()
        self._owns_provider = provider is None
        self.provider = self._build_provider() if provider is None else provider
        self.estimator = estimator or FallbackEstimator()
        self.retry_backoff = retry_backoff

    def _build_provider(self) -> GoogleDirectionsProvider:
        settings = self.config.providers.get(RouteProvider.GOOGLE)
        if settings is None:
            return GoogleDirectionsProvider(api_key=None, session=self.session)
        return GoogleDirectionsProvider(
            api_key=settings.api_key,
            endpoint=settings.endpoint,
            session=self.session,
        )

    @property
    def provider_name(self) -> RouteProvider:
        return getattr(self.provider, "name", RouteProvider.GOOGLE)

    async def get_route(self, request: RouteRequest) -> RouteResponse:
        caching = self.config.caching.enabled
        key = cache_key(request.origin, request.destination, request.mode)

        if caching:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit for route request {key}")
                return cached

        request_id = request.id or new_id()
        handle = self.coordinator.begin(request_id)
        try:
            try:
                response = await self._from_primary(request, request_id, handle)
            except ProviderError as e:
                response = self._recover(request, request_id, e)
            except Exception as e:
                logger.exception(f"Unexpected error from {self.provider_name.value}")
                response = self._recover(
                    request,
                    request_id,
                    ServiceUnavailable(str(e), provider=self.provider_name.value),
                )

            # A cancelled or superseded attempt must not overwrite its successor's entry.
            abandoned = handle.cancelled and handle.reason != TIMED_OUT
            if response.status is RouteStatus.OK and caching and not abandoned:
                self.cache.set(key, response)
            return response
        finally:
            self.coordinator.finish(handle)

    async def _from_primary(
        self,
        request: RouteRequest,
        request_id: str,
        handle: CancellationHandle,
    ) -> RouteResponse:
        name = self.provider_name
        settings = self.config.providers.get(name)
        if settings is not None and request.mode not in settings.capabilities:
            raise InvalidRequest(
                f"{name.value} does not support {request.mode.value}",
                provider=name.value,
            )

        timeout = self.config.fallback_behavior.timeout_ms / 1000
        payload = await handle.run(self._fetch_with_retries(request), timeout=timeout)
        return to_route_response(payload, request, request_id)

    async def _fetch_with_retries(self, request: RouteRequest) -> ProviderPayload:
        retries = self.config.fallback_behavior.max_retries
        for attempt in range(retries + 1):
            try:
                return await self.provider.fetch(request)
            except ProviderError as e:
                if not e.retryable or attempt == retries:
                    raise
                wait = self.retry_backoff * (attempt + 1)
                logger.warning(
                    f"{self.provider_name.value} failed ({e}), retry {attempt + 1}/{retries} in {wait}s"
                )
                await asyncio.sleep(wait)

    def _recover(self, request: RouteRequest, request_id: str, error: ProviderError) -> RouteResponse:
        if not self.config.fallback_behavior.fallback_to_offline:
            logger.warning(f"Primary provider failed and local estimation is disabled: {error}")
            return RouteResponse(
                status=_error_status(error),
                error_message=describe_error(error),
                error_code=error.code,
                retryable=error.retryable,
                provider=self.provider_name,
                request_id=request_id,
                timestamp=datetime.now(timezone.utc),
            )

        # Taken for every failure, including non-retryable ones.
        logger.warning(f"Primary provider failed, using fallback: {error}")
        warnings = [describe_error(error)] if isinstance(error, MissingCredential) else []
        estimate = self.estimator.estimate(request)
        return to_route_response(estimate, request, request_id, warnings=warnings)

    def cancel(self, request_id: str) -> None:
        self.coordinator.cancel(request_id)

    def clear_cache(self) -> None:
        self.cache.clear()

    def update_config(self, partial: Dict[str, Any]) -> RoutingConfig:
        """Deep-merge ``partial`` into the current config and apply it."""
        merged = _deep_merge(self.config.model_dump(mode="json"), partial)
        self.config = RoutingConfig.model_validate(merged)

        self.cache.ttl = self.config.caching.ttl_minutes * 60
        self.cache.max_size = self.config.caching.max_cache_size
        if self._owns_provider:
            self.provider = self._build_provider()
        return self.config
