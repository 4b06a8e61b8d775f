from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.core.config import settings
from app.core.monitoring import setup_metrics
from app.database import connect_to_mongo, close_mongo_connection, db
from app.api.deps import shutdown_regeneration_queue
from app.api.v1 import products, routines

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting SkinSense Routines backend...")
    connect_to_mongo()
    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Waiting for background routine regeneration to finish...")
    shutdown_regeneration_queue()
    close_mongo_connection()
    logger.info("Application shutdown complete")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="SkinSense - product catalog and AI skincare routines",
    lifespan=lifespan
)

setup_metrics(app).instrument(app).expose(app, endpoint="/metrics")

# Mobile apps don't send Origin headers like web apps
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)

# Include routers
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(routines.router, prefix="/api/v1/routines", tags=["Routines"])

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Health check endpoint"""
    db_status = "healthy"
    try:
        db.client.admin.command('ping')
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": "development" if settings.DEBUG else "production",
        "database": db_status,
    }

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Welcome to SkinSense Routines",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
