# microstore/main.py
import uvicorn

from microstore.api import create_app
from microstore.data.database import Base, engine
from microstore.data.seed import seed
from microstore.utils.logging import configure_logging, get_logger
from microstore.utils.settings import LOG_LEVEL

# IMPORT WSZYSTKICH MODELI NA POCZĄTKU (PRZED JAKIMKOLWIEK CREATE_ALL)
import microstore.data.models  # noqa: F401

configure_logging(LOG_LEVEL)
logger = get_logger(__name__)

logger.info(f"Initializing database, models registered: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise

seed()

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
