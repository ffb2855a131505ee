import logging
from typing import Optional

from httpx import HTTPError
from postgrest.exceptions import APIError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
from supabase import create_client, Client

from config import settings

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# SQLAlchemy engine, only used to create the schema on the hosted Postgres
engine: Optional[Engine] = None
if settings.DATABASE_URL:
    try:
        engine = create_engine(
            settings.DATABASE_URL,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=300,
            echo=False
        )
        logger.info("✅ SQLAlchemy engine initialized")
    except SQLAlchemyError as e:
        logger.error(f"❌ Failed to initialize database engine: {str(e)}")
        raise

# Supabase client for the stores
supabase: Optional[Client] = None
if settings.SUPABASE_URL and settings.SUPABASE_KEY:
    supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    logger.info("✅ Supabase client initialized")
else:
    logger.warning("⚠️ Supabase credentials not found, client not initialized")


def test_connection() -> bool:
    """
    Test hosted backend connectivity

    Returns:
        bool: True if connection successful, False otherwise
    """
    if supabase is None:
        return False
    try:
        supabase.table("employees").select("id").limit(1).execute()
        logger.info("✅ Database connection test successful")
        return True
    except (APIError, HTTPError) as e:
        logger.error(f"❌ Database connection test failed: {str(e)}")
        return False


def init_db(bind: Optional[Engine] = None) -> bool:
    """
    Create the tables defined in ``models`` if they do not exist yet.
    Skipped when no engine is configured.
    """
    bind = bind or engine
    if bind is None:
        logger.info("ℹ️ DATABASE_URL not set, skipping schema creation")
        return False
    try:
        # Import all models here to ensure they are registered with Base
        import models  # noqa: F401

        Base.metadata.create_all(bind=bind)
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("✅ Database tables initialized")
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Failed to initialize database tables: {str(e)}")
        raise
