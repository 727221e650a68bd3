"""Apply pending SQL migrations, tracked in the _migrations table."""

import asyncio
import logging
import os
import sys
from pathlib import Path

import asyncpg
from dotenv import load_dotenv

_root = Path(__file__).resolve().parent.parent.parent.parent

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent


async def run_migrations(database_url: str) -> list[str]:
    """Apply each *.sql file not yet recorded, in name order. Returns applied names."""
    conn = await asyncpg.connect(database_url)
    applied_now: list[str] = []
    try:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                filename TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """)
        applied = {row["filename"] for row in await conn.fetch("SELECT filename FROM _migrations")}

        for sql_file in sorted(MIGRATIONS_DIR.glob("*.sql")):
            if sql_file.name in applied:
                logger.info("SKIP  %s (already applied)", sql_file.name)
                continue

            logger.info("APPLY %s", sql_file.name)
            async with conn.transaction():
                await conn.execute(sql_file.read_text(encoding="utf-8"))
                await conn.execute("INSERT INTO _migrations (filename) VALUES ($1)", sql_file.name)
            applied_now.append(sql_file.name)
    finally:
        await conn.close()

    logger.info("Migrations complete (%d applied)", len(applied_now))
    return applied_now


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    load_dotenv(_root / ".env")
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL not set")
        sys.exit(1)
    asyncio.run(run_migrations(database_url))


if __name__ == "__main__":
    main()
