from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .route import RouteProvider, TransportMode


class RateLimits(BaseModel):
    # Advisory only, nothing enforces these.
    requests_per_second: int = 10
    requests_per_day: int = 25000


class ProviderConfig(BaseModel):
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    priority: int = 1
    capabilities: List[TransportMode] = Field(
        default_factory=lambda: [
            TransportMode.DRIVING,
            TransportMode.WALKING,
            TransportMode.CYCLING,
            TransportMode.TRANSIT,
        ]
    )
    rate_limits: RateLimits = Field(default_factory=RateLimits)


class FallbackBehavior(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    timeout_ms: int = Field(default=10000, gt=0)
    fallback_to_offline: bool = True


class CachingConfig(BaseModel):
    enabled: bool = True
    ttl_minutes: float = Field(default=5, gt=0)
    max_cache_size: int = Field(default=100, gt=0)


class RealTimeUpdates(BaseModel):
    # Reserved; there is no polling loop.
    enabled: bool = False
    update_interval: int = 60
    providers: List[RouteProvider] = Field(default_factory=lambda: [RouteProvider.GOOGLE])


class RoutingConfig(BaseModel):
    providers: Dict[RouteProvider, ProviderConfig] = Field(
        default_factory=lambda: {RouteProvider.GOOGLE: ProviderConfig()}
    )
    fallback_behavior: FallbackBehavior = Field(default_factory=FallbackBehavior)
    caching: CachingConfig = Field(default_factory=CachingConfig)
    real_time_updates: RealTimeUpdates = Field(default_factory=RealTimeUpdates)

    def available_providers(self, mode: Optional[TransportMode] = None) -> List[RouteProvider]:
        """Providers with a credential (and the mode, if given), best priority first."""
        usable = [
            (name, provider)
            for name, provider in self.providers.items()
            if provider.api_key and (mode is None or mode in provider.capabilities)
        ]
        usable.sort(key=lambda item: item[1].priority)
        return [name for name, _ in usable]

    def redacted(self) -> dict:
        data = self.model_dump(mode="json")
        for provider in data["providers"].values():
            if provider.get("api_key"):
                provider["api_key"] = "***"
        return data
