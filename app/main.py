import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.modules.auth import routes as auth_routes
from app.modules.subscriptions import routes as subscriptions_routes
from app.modules.zones import routes as zones_routes
from app.modules.devices import routes as devices_routes
from app.modules.crops import routes as crops_routes
from app.modules.sensor_readings import routes as sensor_readings_routes
from app.modules.irrigation import routes as irrigation_routes
from app.modules.automation import routes as automation_routes
from app.modules.alerts import routes as alerts_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.weather import routes as weather_routes
from app.modules.dashboard import routes as dashboard_routes
from app.modules.platform import routes as platform_routes
from app.modules.contact import routes as contact_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(subscriptions_routes.router, prefix="/api/v1")
app.include_router(zones_routes.router, prefix="/api/v1")
app.include_router(devices_routes.router, prefix="/api/v1")
app.include_router(crops_routes.router, prefix="/api/v1")
app.include_router(sensor_readings_routes.router, prefix="/api/v1")
app.include_router(irrigation_routes.router, prefix="/api/v1")
app.include_router(automation_routes.router, prefix="/api/v1")
app.include_router(alerts_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(weather_routes.router, prefix="/api/v1")
app.include_router(dashboard_routes.router, prefix="/api/v1")
app.include_router(platform_routes.router, prefix="/api/v1")
app.include_router(contact_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.automation_engine_enabled:
        from app.modules.automation.engine import automation_engine_loop
        app.state.automation_task = asyncio.create_task(automation_engine_loop())
        logger.info(f"Automation engine started - evaluating rules every {settings.automation_interval_seconds} seconds")


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "automation_task", None)
    if task:
        task.cancel()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe"""
    return {"status": "ready"}
