from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.database import engine, Base
from app.api import products, health
from app.services.product_service import DEMO_PRODUCTS, ProductStore
from app.utils.storage import DatabaseStorage, build_storage

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_product_store() -> ProductStore:
    """Build the product store for the configured storage backend and load the saved list."""
    storage = build_storage(settings)

    if isinstance(storage, DatabaseStorage):
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

    store = ProductStore(
        storage=storage,
        storage_key=settings.STORAGE_KEY,
        page_size=settings.DEFAULT_PAGE_SIZE,
        seed=DEMO_PRODUCTS if settings.SEED_DEMO_PRODUCTS else None,
    )
    store.load()
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")
    logger.info(f"Using '{settings.STORAGE_BACKEND}' storage backend")
    app.state.product_store = create_product_store()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.product_store.save()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    A small product inventory manager:

    - **Products**: add products with a name, price and stock flag
    - **Table**: paginated, newest first, with page sizes of 3, 5, 10 or 20
    - **Row actions**: toggle stock status, highlight, delete
    - **Persistence**: the whole list is saved to a key-value store after every change

    ## Storage backends
    Set `STORAGE_BACKEND` to `database` (SQLAlchemy, SQLite by default),
    `redis`, or `memory`.
    """,
    version="1.0.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
