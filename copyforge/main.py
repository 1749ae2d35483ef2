import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from copyforge.config import settings
from copyforge.modules.auth import routes as auth_routes
from copyforge.modules.organizations import routes as organizations_routes
from copyforge.modules.brands import routes as brands_routes
from copyforge.modules.conversations import routes as conversations_routes
from copyforge.modules.artifacts import routes as artifacts_routes
from copyforge.modules.modes import routes as modes_routes
from copyforge.modules.prompts import routes as prompts_routes
from copyforge.modules.custom_prompts import routes as custom_prompts_routes
from copyforge.modules.notifications import routes as notifications_routes
from copyforge.modules.rag import routes as rag_routes
from copyforge.modules.orchestrator import routes as chat_routes
from copyforge.modules.queue import routes as queue_routes
from copyforge.modules.flows import routes as flows_routes

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


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


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
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
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
app.include_router(organizations_routes.router, prefix="/api/v1")
app.include_router(brands_routes.router, prefix="/api/v1")
app.include_router(conversations_routes.router, prefix="/api/v1")
app.include_router(conversations_routes.shared_router, prefix="/api/v1")
app.include_router(artifacts_routes.router, prefix="/api/v1")
app.include_router(artifacts_routes.shared_router, prefix="/api/v1")
app.include_router(modes_routes.router, prefix="/api/v1")
app.include_router(prompts_routes.router, prefix="/api/v1")
app.include_router(custom_prompts_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(rag_routes.router, prefix="/api/v1")
app.include_router(chat_routes.router, prefix="/api/v1")
app.include_router(queue_routes.router, prefix="/api/v1")
app.include_router(queue_routes.cron_router, prefix="/api/v1")
app.include_router(flows_routes.router, prefix="/api/v1")
app.include_router(flows_routes.calendar_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info(f"Application startup ({settings.environment}, orchestrator routing: {settings.orchestrator_routing})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to copyforge-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: configuration needed to serve chat traffic is present"""
    missing = [
        name for name, value in (
            ("supabase_url", settings.supabase_url),
            ("supabase_key", settings.supabase_key),
        ) if not value
    ]
    if missing:
        return JSONResponse(status_code=503, content={"status": "not ready", "missing": missing})
    return {"status": "ready"}
