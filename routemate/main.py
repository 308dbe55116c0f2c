from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import logging
import time
import uvicorn

# Load environment variables from .env file
load_dotenv()

from routemate.api.v1 import line, routes
from routemate.core.logging import setup_logging
from routemate.core.settings import get_settings

settings = get_settings()

# Setup logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="RouteMate API", version="0.1.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests_middleware(request: Request, call_next):
    """Log incoming requests, their processing time, and handle basic errors."""
    start_time = time.time()
    method = request.method
    path = request.url.path

    logger.info(f"Request: {method} {path}")

    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(
            f"Response: {method} {path} - Status: {response.status_code} - Duration: {process_time:.4f}s"
        )
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"Error: {method} {path} - Exception: {str(e)} - Duration: {process_time:.4f}s",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please check logs for more details."},
        )


# Include routers
app.include_router(routes.router, prefix="/api", tags=["routes"])
app.include_router(line.router, prefix="/api", tags=["line"])


@app.get("/api", summary="API Welcome", tags=["General"])
async def api_welcome_message():
    """Provides a welcome message and basic API information."""
    return {
        "message": "Welcome to RouteMate API",
        "version": app.version,
        "documentation_url": app.docs_url,
        "simulation": {
            "maps": settings.maps_simulated,
            "messaging": settings.messaging_simulated,
        },
    }


@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request body for {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid input data", "errors": jsonable_encoder(exc.errors())},
    )


if __name__ == "__main__":
    logger.info(f"Starting server on {settings.HOST}:{settings.PORT}, environment: {settings.ENVIRONMENT}")

    uvicorn.run(
        "routemate.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=logging.getLevelName(logger.getEffectiveLevel()).lower(), # Sync uvicorn log level
        reload=settings.ENVIRONMENT == "development", # Enable reload only in dev
    )
