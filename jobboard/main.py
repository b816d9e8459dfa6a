"""
FastAPI application entry point for the job board portal.

This is the main app that:
- Initializes FastAPI with CORS
- Registers the page routers
- Turns page redirects into 303 responses
- Owns the backend HTTP client and the local storage lifecycle
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from jobboard import database
from jobboard.config import settings
from jobboard.services.api_client import create_http_client
from jobboard.services.session import PageRedirect
# Import page routers
from jobboard.api import admin, applications, auth, employer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    On startup: Create local storage tables and the backend HTTP client
    On shutdown: Close the HTTP client and database connections
    """
    # Startup
    logger.info("🚀 Starting job board portal...")
    logger.info(f"🌐 Backend API: {settings.api_base_url}")
    logger.info(f"🔧 Debug mode: {settings.debug}")
    await database.init_db()
    app.state.http_client = create_http_client()

    yield

    # Shutdown
    logger.info("👋 Shutting down job board portal...")
    await app.state.http_client.aclose()
    await database.engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Job Board Portal",
    description="Pages for job seekers, employers and admins of the job board",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]

if settings.allowed_origins:
    allowed_origins.extend(settings.allowed_origins.split(','))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PageRedirect)
async def page_redirect_handler(request: Request, exc: PageRedirect):
    """Send the browser to another page, with an optional flash message."""
    response = RedirectResponse(url=exc.location, status_code=303)
    if exc.message:
        response.headers["X-Portal-Message"] = exc.message
    new_portal_id = getattr(request.state, "new_portal_id", None)
    if new_portal_id:
        response.set_cookie(
            key=settings.session_cookie_name,
            value=new_portal_id,
            httponly=True,
            samesite="lax",
            max_age=86400 * 30,
        )
    logger.info(f"Redirecting {request.method} {request.url.path} to {exc.location}")
    return response


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Job Board Portal",
        "version": "1.0.0",
    }


# Root endpoint
@app.get("/")
async def root():
    """Portal root with basic info."""
    return {
        "message": "Job Board Portal",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Register page routers
app.include_router(auth.router, tags=["auth"])
app.include_router(applications.router, tags=["applications"])
app.include_router(employer.router, prefix="/employer", tags=["employer"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
