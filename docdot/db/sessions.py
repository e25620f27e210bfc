import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from docdot.core.config import settings

logger = logging.getLogger("docdot.db.session")
if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

DATABASE_URL = settings.DATABASE_URL
logger.info("Initializing DB session (checking configuration)")
logger.info("DATABASE_URL configured: %s", bool(DATABASE_URL))

if not DATABASE_URL:
    logger.error("DATABASE_URL is not configured. Set the DATABASE_URL env var.")
    raise RuntimeError("DATABASE_URL is not configured. Set the DATABASE_URL env var.")

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # the bot handlers and the request threadpool share the engine
    connect_args["check_same_thread"] = False

# enable pool_pre_ping to avoid stale/closed connections
engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
