from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def create_engine(
    database_url: str, echo: bool = False, register_vector: bool = False
) -> AsyncEngine:
    engine = create_async_engine(database_url, echo=echo)

    if register_vector and engine.dialect.driver == "asyncpg":

        @event.listens_for(engine.sync_engine, "connect")
        def on_connect(dbapi_connection, connection_record):
            # Text codec: pgvector's bind_processor already renders lists as text
            async def _register_text_codec(conn):
                await conn.set_type_codec(
                    "vector", schema="public",
                    encoder=str, decoder=str, format="text",
                )
            dbapi_connection.run_async(_register_text_codec)

    return engine


def create_session_factory(engine: Optional[AsyncEngine]) -> Optional[async_sessionmaker[AsyncSession]]:
    """Session factory bound to engine, or None when no database is bound."""
    if engine is None:
        return None
    return async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
