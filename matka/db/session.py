from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base
from matka.core.config import settings

if settings.DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(settings.DATABASE_URL, connect_args={"timeout": 30})
else:
    engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True, pool_recycle=3600)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)
Base = declarative_base()

async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session

# BIGINT keys; sqlite only autoincrements a plain INTEGER primary key
BigId = BigInteger().with_variant(Integer, "sqlite")
