from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.responses import JSONResponse

import app.db.base  # noqa: F401  registra todos os models no metadata
from app.api.main import api_router
from app.core.exceptions import SchedulingError
from app.core.logging import configure_logging, get_logger
from app.core.security import CSPMiddleware
from app.core.settings import Env, settings
from app.middlewares.telemetry import RequestContextMiddleware
from app.version import APP_NAME, APP_VERSION, version_info

configure_logging(json=settings.APP_ENV != Env.DEV, level="DEBUG" if settings.DEBUG else "INFO")

app = FastAPI(title=APP_NAME, version=APP_VERSION, debug=settings.DEBUG)

# --- Middlewares de contexto/log
app.add_middleware(RequestContextMiddleware)

# --- CORS (config abaixo)
allowed_origins = []
for host in settings.ALLOWED_HOSTS.split(","):
    _host = host.strip()
    if not _host:
        continue
    # aceita tanto com quanto sem protocolo
    if _host.startswith("http"):
        allowed_origins.append(_host)
    else:
        allowed_origins.append(f"http://{_host}")
        allowed_origins.append(f"https://{_host}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=(allowed_origins or ["*"]) if settings.DEBUG else allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Segurança: HTTPS only em prod
if settings.APP_ENV == Env.PROD:
    app.add_middleware(HTTPSRedirectMiddleware)


# --- Security headers (HSTS, X-Content-Type-Options, etc.)
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)

    if settings.APP_ENV == Env.PROD:
        response.headers["Strict-Transport-Security"] = (
            "max-age=15552000; includeSubDomains; preload"
        )

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


app.add_middleware(CSPMiddleware)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    get_logger().info(
        "request.rejected", error=exc.kind, status_code=exc.status_code, path=request.url.path
    )
    return JSONResponse(
        {"detail": exc.message, "error": exc.kind}, status_code=exc.status_code
    )


app.include_router(api_router)


# --- Endpoints
@app.get("/healthz", tags=["ops"])
def healthz():
    get_logger().info("health.check")
    return {"status": "ok", "env": settings.APP_ENV, "version": APP_VERSION}


@app.get("/version", tags=["ops"])
def version():
    return {**version_info(), "env": settings.APP_ENV, "debug": settings.DEBUG}
