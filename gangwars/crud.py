"""Data access helpers.

None of these commit. The service layer owns the session and wraps calls in
`session.begin()`, so several helpers can take part in one unit of work.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from gangwars.models.schemas import Gang, JoinRequest, Player, Transaction


class ReadData:
    @staticmethod
    async def read_player(player_id: str, session: AsyncSession, for_update: bool = False) -> Optional[Player]:
        """Read a player by id

        Args:
            player_id (str): External identity of the player
            for_update (bool): Lock the row until the transaction ends

        Returns:
            Player | None: The player row
        """
        stmt = select(Player).where(Player.player_id == player_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_player_by_name(name: str, session: AsyncSession) -> Optional[Player]:
        """Read a player by display name, case-insensitively"""
        stmt = (
            select(Player)
            .where(func.lower(Player.name) == name.lower())
            .order_by(Player.created_at)
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_players(player_ids: List[str], session: AsyncSession, for_update: bool = False) -> List[Player]:
        stmt = select(Player).where(Player.player_id.in_(player_ids)).order_by(Player.player_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def read_player_ids(session: AsyncSession) -> List[str]:
        result = await session.execute(select(Player.player_id).order_by(Player.player_id))
        return list(result.scalars().all())

    @staticmethod
    async def read_gang(gang_id: str, session: AsyncSession, for_update: bool = False) -> Optional[Gang]:
        """Read a gang by id

        Args:
            gang_id (str): To identify the gang
            for_update (bool): Lock the row until the transaction ends

        Returns:
            Gang | None: The gang row
        """
        stmt = select(Gang).where(Gang.gang_id == gang_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_gang_ids(session: AsyncSession) -> List[str]:
        result = await session.execute(select(Gang.gang_id).order_by(Gang.gang_id))
        return list(result.scalars().all())

    @staticmethod
    async def read_gang_by_name(name: str, session: AsyncSession) -> Optional[Gang]:
        """Read a gang by name, case-insensitively"""
        stmt = (
            select(Gang)
            .where(func.lower(Gang.name) == name.lower())
            .order_by(Gang.created_at)
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_gang_members(gang_id: str, session: AsyncSession, for_update: bool = False) -> List[Player]:
        """Read every player whose gang_id points at the gang"""
        stmt = (
            select(Player)
            .where(Player.gang_id == gang_id)
            .order_by(Player.created_at, Player.player_id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_gang_members(gang_id: str, session: AsyncSession) -> int:
        stmt = select(func.count()).select_from(Player).where(Player.gang_id == gang_id)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def read_join_request(request_id: UUID, session: AsyncSession) -> Optional[JoinRequest]:
        stmt = select(JoinRequest).where(JoinRequest.request_id == request_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_join_request_for_pair(player_id: str, gang_id: str, session: AsyncSession) -> Optional[JoinRequest]:
        stmt = select(JoinRequest).where(
            JoinRequest.player_id == player_id,
            JoinRequest.gang_id == gang_id,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_join_requests_for_gang(gang_id: str, session: AsyncSession) -> List[JoinRequest]:
        stmt = (
            select(JoinRequest)
            .where(JoinRequest.gang_id == gang_id)
            .order_by(JoinRequest.created_at)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def read_transactions(player_id: str, session: AsyncSession, limit: int = 20) -> List[Transaction]:
        """Read the latest transactions of a player, newest first"""
        stmt = (
            select(Transaction)
            .where(Transaction.player_id == player_id)
            .order_by(desc(Transaction.created_at), desc(Transaction.transaction_id))
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())


class CreateData:
    @staticmethod
    def add_player(player: Player, session: AsyncSession) -> Player:
        session.add(player)
        return player

    @staticmethod
    def add_gang(gang: Gang, session: AsyncSession) -> Gang:
        session.add(gang)
        return gang

    @staticmethod
    def add_join_request(player_id: str, gang_id: str, created_at: datetime, session: AsyncSession) -> JoinRequest:
        join_request = JoinRequest(
            request_id=uuid7(),
            player_id=player_id,
            gang_id=gang_id,
            created_at=created_at,
        )
        session.add(join_request)
        return join_request

    @staticmethod
    def add_transaction(
        session: AsyncSession,
        *,
        kind: str,
        amount: int,
        created_at: datetime,
        player_id: Optional[str] = None,
        gang_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Transaction:
        """Record a balance change in the current unit of work

        Args:
            kind (str): earn, spend, deposit, withdraw or admin
            amount (int): Always positive; the kind carries the direction
        """
        transaction = Transaction(
            transaction_id=uuid7(),
            player_id=player_id,
            gang_id=gang_id,
            kind=kind,
            amount=amount,
            note=note,
            created_at=created_at,
        )
        session.add(transaction)
        return transaction


class DeleteData:
    @staticmethod
    async def delete_join_requests_for_player(player_id: str, session: AsyncSession) -> None:
        await session.execute(delete(JoinRequest).where(JoinRequest.player_id == player_id))

    @staticmethod
    async def delete_join_requests_for_gang(gang_id: str, session: AsyncSession) -> None:
        await session.execute(delete(JoinRequest).where(JoinRequest.gang_id == gang_id))

    @staticmethod
    async def delete_all(session: AsyncSession) -> None:
        """Delete every row of every Gang Wars table"""
        for table in (Transaction, JoinRequest, Player, Gang):
            await session.execute(delete(table))
