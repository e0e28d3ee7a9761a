"""Shared plumbing for the Gang Wars service layer.

- Services own session/transaction boundaries; CRUD helpers never commit.
- Every mutation runs inside one `session.begin()` unit of work while the
  entity locks of everything it touches are held.
- Validation failures are raised as GangWarsError and roll the unit back.
- Any SQLAlchemy failure is logged and surfaced as StorageError.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gangwars.crud import ReadData
from gangwars.entity_lock_manager import EntityLockManager
from gangwars.errors import ConflictError, GangWarsError, NotFoundError, StorageError
from gangwars.models.schemas import Gang, Player

Clock = Callable[[], datetime]


class BaseService:
    def __init__(
        self,
        Session: async_sessionmaker,
        locks: Optional[EntityLockManager] = None,
        clock: Optional[Clock] = None,
    ):
        self.Session = Session
        self.locks = locks or EntityLockManager()
        self.clock: Clock = clock or datetime.now

    @asynccontextmanager
    async def transaction(self, action: str) -> AsyncIterator[AsyncSession]:
        """Open a session and a transaction around one operation

        Args:
            action (str): Used in the log line if the store fails
        """
        async with self.Session() as session:
            try:
                async with session.begin():
                    yield session
            except GangWarsError:
                raise
            except SQLAlchemyError as e:
                logging.error(f"Failed to {action}: {e}")
                raise StorageError() from e

    async def peek_gang_id(self, player_id: str) -> Optional[str]:
        """Read which gang a player belongs to, before taking any lock.

        Callers re-check the value under the lock with `ensure_same_gang`.
        """
        async with self.transaction("read player gang") as session:
            player = await ReadData.read_player(player_id, session)
            return player.gang_id if player is not None else None

    @staticmethod
    def ensure_same_gang(player: Player, expected_gang_id: Optional[str]) -> None:
        if player.gang_id != expected_gang_id:
            raise ConflictError("Gang membership changed, try again")

    @staticmethod
    async def require_player(
        player_id: str,
        session: AsyncSession,
        for_update: bool = True,
        reason: str = "Player not registered",
    ) -> Player:
        player = await ReadData.read_player(player_id, session, for_update=for_update)
        if player is None:
            raise NotFoundError(reason)
        return player

    @staticmethod
    async def require_gang(
        gang_id: str,
        session: AsyncSession,
        for_update: bool = True,
    ) -> Gang:
        gang = await ReadData.read_gang(gang_id, session, for_update=for_update)
        if gang is None:
            raise NotFoundError("Gang not found")
        return gang
