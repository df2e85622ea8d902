"""Database connection management."""

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool


class DatabaseConfig:
    """Database configuration."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize database config from dict."""
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "feedpress")
        self.user = config.get("user", "feedpress")
        self.min_pool_size = config.get("min_pool_size", 1)
        self.max_pool_size = config.get("max_pool_size", 10)
        self.dsn = config.get("dsn")

        # Explicit password wins over the environment indirection
        password = config.get("password")
        password_env = config.get("password_env")
        if not password and password_env:
            password = os.environ.get(password_env, "")
        self.password = password or ""

    @property
    def connection_string(self) -> str:
        """Get psycopg connection string. An explicit DSN wins over the parts."""
        if self.dsn:
            return self.dsn
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


_connection_pool: Optional[AsyncConnectionPool] = None


async def get_connection_pool(config: Dict[str, Any]) -> AsyncConnectionPool:
    """Get or create the async connection pool."""
    global _connection_pool
    if _connection_pool is None:
        db_config = DatabaseConfig(config)
        _connection_pool = AsyncConnectionPool(
            db_config.connection_string,
            min_size=db_config.min_pool_size,
            max_size=db_config.max_pool_size,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        await _connection_pool.open()
    return _connection_pool


async def close_connection_pool() -> None:
    """Close the pool, if one was opened."""
    global _connection_pool
    if _connection_pool is not None:
        await _connection_pool.close()
        _connection_pool = None


@asynccontextmanager
async def get_connection(
    config: Dict[str, Any],
) -> AsyncGenerator[psycopg.AsyncConnection, None]:
    """Get a database connection from the pool. Commits on clean exit."""
    pool = await get_connection_pool(config)
    async with pool.connection() as conn:
        yield conn
