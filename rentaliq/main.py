from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from rentaliq.config import get_settings
from rentaliq.logging_config import configure_logging
from rentaliq.api.properties import router as properties_router
from rentaliq.api.analysis import router as analysis_router
from rentaliq.api.section8 import router as section8_router

settings = get_settings()
logger = structlog.get_logger()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.log_level)
    logger.info(
        "Starting RentalIQ API",
        bright_data=settings.has_bright_data,
        rapidapi=bool(settings.rapidapi_key),
        narrator=bool(settings.anthropic_api_key),
    )
    yield
    # Shutdown
    logger.info("Shutting down RentalIQ API")


app = FastAPI(
    title="RentalIQ",
    description="Multi-source property discovery, valuation and investment risk analysis",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_origin_regex=r"https://.*\.vercel\.app",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": VERSION}


@app.get("/")
async def root():
    return {
        "name": "RentalIQ",
        "version": VERSION,
        "docs": "/docs",
    }


# Include routers
app.include_router(properties_router, prefix="/api")
app.include_router(analysis_router, prefix="/api")
app.include_router(section8_router, prefix="/api")
