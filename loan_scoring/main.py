from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from contextlib import asynccontextmanager
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
import logging
import traceback

from loan_scoring.api.auth_routes import router as auth_router
from loan_scoring.api.loan_routes import router as loan_router
from loan_scoring.api.upload_routes import router as upload_router
from loan_scoring.core.config import settings, log_settings_summary
from loan_scoring.core.exceptions import ServiceError
from loan_scoring.database.connection import init_db
from loan_scoring.helpers.response_builder import build_error_response

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("server_exception_handler")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to every non-OPTIONS response.

    OPTIONS requests are left to CORSMiddleware, which is registered last so
    it runs first and can answer preflight requests itself.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_settings_summary()
    await init_db()
    yield

app = FastAPI(
    title="Islamic Financing Intake and AI Scoring",
    description="Shariah-compliant financing applications with AI-assisted scoring",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTPException handled: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_response(exc.detail),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Report the first offending field only
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    logger.warning(f"Validation error: {errors}")
    return JSONResponse(
        status_code=400,
        content=build_error_response(first.get("msg", "Request validation failed"), ".".join(loc) or None)
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    return JSONResponse(status_code=500, content=build_error_response("Internal server error"))


raw_origins = settings.CLIENT_URL or ""
allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

# Middleware runs in reverse registration order; CORS is added last so it runs first.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
        "Idempotency-Key",
    ],
    max_age=3600,
)

app.include_router(auth_router)
app.include_router(loan_router)
app.include_router(upload_router)


@app.get("/")
async def root():
    return {"message": "Islamic financing API is running!"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("loan_scoring.main:app", host="0.0.0.0", port=8000, reload=True)
