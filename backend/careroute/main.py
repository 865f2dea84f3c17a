from contextlib import asynccontextmanager
from typing import Mapping, Optional

from fastapi import FastAPI

from careroute.api.internal import health, routing as routing_admin
from careroute.api.v1 import calls
from careroute.core.config import Settings, get_settings
from careroute.core.config_loader import FeatureFlags, load_config
from careroute.core.exceptions import CareRouteError, careroute_exception_handler
from careroute.core.logging import configure_logging, get_logger
from careroute.middleware.request_id import RequestIdMiddleware
from careroute.models.config import RouterConfig
from careroute.providers.base import ProviderAdapter
from careroute.providers.registry import ProviderRegistry
from careroute.routing.healthcare import HealthcareRouter

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    config: Optional[RouterConfig] = None,
    adapters: Optional[Mapping[str, ProviderAdapter]] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, cache_loggers=not settings.is_development)
        logger.info("startup", env=settings.app_env)

        router_config = config or load_config(
            settings.config_root,
            overlay=settings.overlay,
            tenant=settings.tenant,
        )
        provider_registry = ProviderRegistry(router_config, settings, adapters=adapters)
        router = HealthcareRouter(router_config, provider_registry.adapters())

        app.state.settings = settings
        app.state.router_config = router_config
        app.state.feature_flags = FeatureFlags(router_config)
        app.state.provider_registry = provider_registry
        app.state.router = router

        logger.info(
            "components_ready",
            providers=provider_registry.available_providers(),
            rules=len(router_config.routing.rules),
        )

        yield

        logger.info("shutdown")

    app = FastAPI(
        title="CareRoute",
        description="Model routing and cost governance for the aging-in-place platform",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(CareRouteError, careroute_exception_handler)

    app.include_router(calls.router, prefix="/v1")
    app.include_router(health.router)
    app.include_router(routing_admin.router, prefix="/internal")

    return app


app = create_app()
