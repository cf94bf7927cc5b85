"""Delete token revocations whose tokens have expired on their own.

Revoked tokens only need to stay in ``jwt_blacklist`` until their natural
expiry; run this periodically (e.g. from cron) to keep the table small.

Run from the backend directory:
    python -m scripts.purge_revoked_tokens
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from gymapp.auth.revocation import purge_expired_revocations
from gymapp.database import async_session_factory, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


async def purge() -> int:
    async with async_session_factory() as session:
        removed = await purge_expired_revocations(session)
        await session.commit()
    await engine.dispose()
    return removed


if __name__ == "__main__":
    asyncio.run(purge())
