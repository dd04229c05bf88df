import asyncio

from spk_tracker.core.database import engine
from spk_tracker.models import Base


async def reset():
    print("Connessione al database, eliminazione tabelle spk e payments...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tabelle eliminate. Creazione nuove tabelle...")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database resettato con successo!")


if __name__ == "__main__":
    asyncio.run(reset())
