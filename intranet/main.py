"""
Main FastAPI application
Cresci e Perdi corporate intranet backend
"""
from fastapi import Depends, FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from intranet.config import settings
from intranet.database import init_db
from intranet.dependencies import enforce_mandatory_content
from intranet.api import (
    admin,
    announcements,
    campaigns,
    checklists,
    ideas,
    mandatory_contents,
    mural,
    notifications,
    surveys,
    trainings,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Intranet backend with mandatory content confirmation, communications and trainings",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""

    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )

    return response


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""

    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


# HTTP exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Format HTTP exceptions consistently

    Structured details that carry their own error code (gate, workflow,
    rate limit) are returned as-is.
    """
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = {**exc.detail, "status_code": exc.status_code}
    else:
        content = {
            "error": "http_error",
            "message": exc.detail,
            "status_code": exc.status_code
        }

    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring

    Returns service status
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": time.time()
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Cresci e Perdi Intranet API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
# The workflow and the admin console stay reachable while content is pending
app.include_router(mandatory_contents.router)
app.include_router(admin.router)

gated = [Depends(enforce_mandatory_content)]
app.include_router(announcements.router, dependencies=gated)
app.include_router(notifications.router, dependencies=gated)
app.include_router(ideas.router, dependencies=gated)
app.include_router(campaigns.router, dependencies=gated)
app.include_router(surveys.router, dependencies=gated)
app.include_router(checklists.router, dependencies=gated)
app.include_router(mural.router, dependencies=gated)
app.include_router(trainings.router, dependencies=gated)
app.include_router(trainings.paths_router, dependencies=gated)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down application")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "intranet.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
