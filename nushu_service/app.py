"""Nushu Association Service - FastAPI server for the association website."""

import os
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from nushu_service.shared.database import init_db
from nushu_service.shared.errors import ServiceError, InternalError
from nushu_service.shared.admin.routes import router as admin_router
from nushu_service.shared.contact.routes import router as contact_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
    ).split(",")
    if origin.strip()
]

app = FastAPI(
    title="Nushu Association Service",
    description="Contact intake and admin moderation for the Nushu Culture & Research Association website",
    version="0.1.0"
)


def is_development() -> bool:
    return os.environ.get("APP_ENV", "").lower() == "development"


# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    try:
        init_db()
        logging.info("Database initialization completed on startup")
    except Exception as e:
        # Tables may already exist or the database may be briefly unreachable;
        # requests will surface persistence errors as 500s
        logging.error(f"Database initialization error on startup: {str(e)}")


app.include_router(admin_router)
app.include_router(contact_router)

# CORS configuration - must be added before exception handlers
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses, which bypass the middleware."""
    origin = request.headers.get("origin")
    if origin in ALLOWED_ORIGINS:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        }
    return {}


def _error_response(request: Request, status_code: int, content: dict, headers: dict = None) -> JSONResponse:
    merged = dict(headers or {})
    merged.update(_cors_headers(request))
    return JSONResponse(status_code=status_code, content=content, headers=merged)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Render service errors as {success: false, message}."""
    content = {"success": False, "message": exc.message}
    content.update(exc.extra_body())
    if isinstance(exc, InternalError) and exc.error and is_development():
        content["error"] = exc.error
    return _error_response(request, exc.status_code, content, exc.headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Render FastAPI HTTP exceptions in the same shape."""
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = {"success": False, "message": str(exc.detail)}
    return _error_response(request, exc.status_code, content, exc.headers)


@app.exception_handler(StarletteHTTPException)
async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and disallowed methods."""
    return _error_response(
        request,
        exc.status_code,
        {"success": False, "message": str(exc.detail)},
        getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are client errors: answer 400 with per-field messages."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc), "message": message})

    return _error_response(
        request,
        400,
        {"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort: log and hide the details unless in development."""
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    content = {"success": False, "message": "Internal server error"}
    if is_development():
        content["error"] = str(exc)
    return _error_response(request, 500, content)


@app.get("/")
async def root():
    return {"message": "Nushu Association Service API is running", "status": "ok"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
