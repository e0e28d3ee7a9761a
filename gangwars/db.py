from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from gangwars.load_secrets import host
from gangwars.models.schemas import Base


def create_engine() -> AsyncEngine:
    """Postgres when DB_HOST is configured, a local SQLite file otherwise."""
    if host:
        from gangwars.create_postgres_engine import create_postgres_engine

        return create_postgres_engine()
    from gangwars.create_sqlite_engine import create_sqlite_engine

    return create_sqlite_engine()


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=bind,
    )


async def create_tables(bind: AsyncEngine) -> None:
    """Create tables if not exists"""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = create_engine()

# Centralized session factory to avoid creating it in router modules.
Session = create_session_factory(engine)
