import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# IMPORT ROUTERS
from formengine.config import settings
from formengine.core.dependencies import get_synchronizer
from formengine.core.exceptions import RepositoryException, ValidationException
from formengine.core.logging_config import configure_logging
from formengine.routers.forms import router as forms_router
from formengine.routers.forms import repository_exception_handler, validation_exception_handler
from formengine.routers.health import router as health_router

logger = logging.getLogger(__name__)


# SWAGGER UI - tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Forms"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# REGISTER EXCEPTION HANDLERS
app.add_exception_handler(ValidationException, validation_exception_handler)
app.add_exception_handler(RepositoryException, repository_exception_handler)

# REGISTER ROUTERS
app.include_router(health_router)   # Health
app.include_router(forms_router)    # Forms


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# STARTUP EVENT
@app.on_event("startup")
async def startup_event():
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.APP_ENV})")

    try:
        forms = await get_synchronizer().load_all()
        logger.info(f"Loaded {len(forms)} form(s)")
    except RepositoryException as e:
        logger.warning(f"Starting with an empty form store: {e}")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("formengine.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
