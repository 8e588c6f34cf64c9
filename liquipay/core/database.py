from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base

from liquipay.core.config import settings


def get_database_url() -> str:
    """Require TLS for remote Postgres outside development (asyncpg spells it `ssl`)."""
    db_url = settings.DATABASE_URL
    if db_url.startswith("postgresql+asyncpg") and "ssl" not in db_url and settings.ENVIRONMENT != "development":
        separator = "&" if "?" in db_url else "?"
        return f"{db_url}{separator}ssl=require"
    return db_url


engine = create_async_engine(get_database_url(), echo=settings.DB_ECHO, pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()


def get_async_session_maker_instance():
    return async_session_maker
