"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from tracksmart.api.middleware import RequestIDMiddleware, MetricsMiddleware
from tracksmart.api.v1 import checkout, coupons, insights, profile
from tracksmart.infrastructure.observability.logging import setup_logging
from tracksmart.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="TrackSmart Gateway",
        description="Campus spending insights, daily cafeteria coupons and checkout",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(profile.router, prefix="/v1", tags=["profiles"])
    app.include_router(insights.router, prefix="/v1", tags=["insights"])
    app.include_router(coupons.router, prefix="/v1", tags=["coupons"])
    app.include_router(checkout.router, prefix="/v1", tags=["checkout"])

    return app


app = create_app()
