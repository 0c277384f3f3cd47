# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api import create_app
from storefront.data.database import Base, engine, init_db
from storefront.data.seed import seed
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    try:
        init_db()
        logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")
        seed()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    yield
    engine.dispose()


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
