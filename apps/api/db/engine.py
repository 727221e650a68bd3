"""asyncpg connection pool lifecycle. The pool lives on app.state, not here."""

import asyncpg


async def init_db(database_url: str) -> asyncpg.Pool:
    """Create the connection pool. Called once at app startup."""
    return await asyncpg.create_pool(database_url, min_size=2, max_size=10)


async def close_db(pool: asyncpg.Pool) -> None:
    """Close the connection pool. Called at app shutdown."""
    await pool.close()
