import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine

from gangwars.db import create_session_factory, create_tables
from gangwars.engine import GangWarsEngine
from gangwars.models.schemas import Gang, Player


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def no_jitter(high: float) -> float:
    return 0.0


class EngineTestCase(unittest.IsolatedAsyncioTestCase):
    """Each test gets a fresh SQLite file, a fake clock and zero jitter."""

    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        path = Path(self._tmp.name) / "gangwars.sqlite3"
        self.db_engine = create_async_engine(f"sqlite+aiosqlite:///{path}")
        await create_tables(self.db_engine)
        self.Session = create_session_factory(self.db_engine)
        self.clock = FakeClock()
        self.engine = GangWarsEngine(
            self.Session,
            clock=self.clock,
            jitter=no_jitter,
            starting_currency=100,
            max_gang_members=5,
        )

    async def asyncTearDown(self) -> None:
        await self.db_engine.dispose()
        self._tmp.cleanup()

    async def set_currency(self, player_id: str, currency: int) -> None:
        async with self.Session() as session:
            async with session.begin():
                await session.execute(
                    update(Player).where(Player.player_id == player_id).values(currency=currency)
                )

    async def set_bank(self, gang_id: str, bank: int) -> None:
        async with self.Session() as session:
            async with session.begin():
                await session.execute(update(Gang).where(Gang.gang_id == gang_id).values(bank=bank))

    async def set_inventory(self, player_id: str, inventory) -> None:
        async with self.Session() as session:
            async with session.begin():
                await session.execute(
                    update(Player).where(Player.player_id == player_id).values(inventory=inventory)
                )

    async def read_raw_inventory(self, player_id: str):
        async with self.Session() as session:
            player = await session.get(Player, player_id)
            return player.inventory

    async def make_gang(self, owner_id: str, name: str, *member_ids: str):
        """Create a gang owned by `owner_id` and approve every given member into it."""
        gang = await self.engine.create_gang(owner_id, name)
        for member_id in member_ids:
            join_request = await self.engine.request_join(member_id, gang.gang_id)
            await self.engine.approve_join(join_request.request_id, owner_id)
        return await self.engine.get_gang(gang.gang_id)
