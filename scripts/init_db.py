"""Create the flows tables (flows, flow_steps, flow_runs, flow_providers) if missing.

Usage:
    python -m scripts.init_db
For development and tests only; production schemas are managed outside
this service.
"""

import asyncio

import app.infrastructure.persistence.database as database
import app.infrastructure.persistence.models  # noqa: F401  (register tables on Base.metadata)


async def main() -> None:
    database.get_session_factory()
    async with database.engine.begin() as conn:
        await conn.run_sync(database.Base.metadata.create_all)
    await database.engine.dispose()
    print("Tables created:", ", ".join(sorted(database.Base.metadata.tables)))


if __name__ == "__main__":
    asyncio.run(main())
