from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import middleware
from docflow.common.middleware import RequestContextMiddleware

# Import routers
from docflow.modules.calculations.router import calculations_router
from docflow.modules.lifecycle.router import lifecycle_router
from docflow.modules.allocations.router import allocations_router
from docflow.modules.numbering.router import numbering_router

from docflow.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Docflow API",
    description="Motor de ciclo de vida y cálculo de documentos financieros (facturas, notas, cotizaciones, gastos)",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestContextMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(calculations_router)
app.include_router(lifecycle_router)
app.include_router(allocations_router)
app.include_router(numbering_router)


@app.get("/")
async def read_root():
    return {
        "message": "Docflow API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "currency": settings.CURRENCY_CODE
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("Docflow API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Currency: {settings.CURRENCY_CODE} ({settings.CURRENCY_DECIMAL_PLACES} decimales)")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Docflow API shutting down...")
