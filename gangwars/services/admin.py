"""Administrative operations.

Nothing here checks the caller's privileges; the dispatcher gates these
behind the super-moderator flag before calling in.
"""

import logging
from typing import List

from gangwars.converter import DataConverter
from gangwars.crud import CreateData, DeleteData, ReadData
from gangwars.entity_lock_manager import gang_key, player_key
from gangwars.errors import ValidationError
from gangwars.models.dc_models import PassiveIncomeResultModel, TransactionKindModel
from gangwars.models.schema_models import PlayerSchema, TransactionSchema
from gangwars.services.base import BaseService


class AdminService(BaseService):
    async def reset(self) -> None:
        """Delete every player, gang, join request and transaction

        Waits for the locks of every existing player and gang, so mutations in
        flight finish first and later ones find their entity gone.
        """
        async with self.transaction("read entity ids") as session:
            keys = [player_key(player_id) for player_id in await ReadData.read_player_ids(session)]
            keys += [gang_key(gang_id) for gang_id in await ReadData.read_gang_ids(session)]

        async with self.locks.hold(*keys):
            async with self.transaction("reset game") as session:
                await DeleteData.delete_all(session)
        await self.locks.clear()
        logging.warning("Gang Wars data was reset")

    async def grant_currency(self, player_id: str, amount: int) -> PlayerSchema:
        """Add currency to a player's balance

        Args:
            player_id (str): The receiving player
            amount (int): Positive amount to add

        Returns:
            PlayerSchema: The player with the new balance
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Invalid amount")

        async with self.locks.hold(player_key(player_id)):
            async with self.transaction("grant currency") as session:
                player = await self.require_player(player_id, session)
                player.currency += amount
                CreateData.add_transaction(
                    session,
                    kind=TransactionKindModel.admin.value,
                    amount=amount,
                    created_at=self.clock(),
                    player_id=player_id,
                    note="grant",
                )
                logging.info(f"Granted {amount} to player {player_id}")
                return DataConverter.convert_player_to_schema(player)

    async def distribute_passive_income(self, amount: int) -> PassiveIncomeResultModel:
        """Credit every registered player with the same amount

        This is the bulk form of grant_currency for an external periodic trigger.
        Players registered while it runs are paid on the next round.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Invalid amount")

        async with self.transaction("read player ids") as session:
            player_ids = await ReadData.read_player_ids(session)

        async with self.locks.hold(*(player_key(player_id) for player_id in player_ids)):
            async with self.transaction("distribute passive income") as session:
                players = await ReadData.read_players(player_ids, session, for_update=True)
                now = self.clock()
                for player in players:
                    player.currency += amount
                    CreateData.add_transaction(
                        session,
                        kind=TransactionKindModel.earn.value,
                        amount=amount,
                        created_at=now,
                        player_id=player.player_id,
                        note="passive income",
                    )
        logging.info(f"Distributed {amount} passive income to {len(players)} player(s)")
        return PassiveIncomeResultModel(players=len(players), amount=amount)

    async def remove_player(self, player_id: str) -> PlayerSchema:
        """Delete a player and everything that references it

        Clears its join requests, its disband vote and its gang membership; a
        gang left without members is deleted too.

        Args:
            player_id (str): The player to remove

        Returns:
            PlayerSchema: The removed player as it was
        """
        gang_id = await self.peek_gang_id(player_id)
        gang_deleted = False

        async with self.locks.hold(player_key(player_id), gang_key(gang_id)):
            async with self.transaction("remove player") as session:
                player = await self.require_player(player_id, session, reason="Player not found")
                self.ensure_same_gang(player, gang_id)
                removed = DataConverter.convert_player_to_schema(player)

                await DeleteData.delete_join_requests_for_player(player_id, session)
                await session.delete(player)
                await session.flush()

                if gang_id:
                    gang = await ReadData.read_gang(gang_id, session, for_update=True)
                    if gang is not None:
                        gang.disband_votes = [
                            voter for voter in (gang.disband_votes or []) if voter != player_id
                        ]
                        if await ReadData.count_gang_members(gang_id, session) == 0:
                            await DeleteData.delete_join_requests_for_gang(gang_id, session)
                            await session.delete(gang)
                            gang_deleted = True

        await self.locks.cleanup(player_key(player_id))
        if gang_deleted:
            await self.locks.cleanup(gang_key(gang_id))
        logging.warning(f"Removed player {player_id} (gang deleted: {gang_deleted})")
        return removed

    async def list_transactions(self, player_id: str, limit: int = 20) -> List[TransactionSchema]:
        async with self.transaction("list transactions") as session:
            await self.require_player(player_id, session, for_update=False, reason="Player not found")
            transactions = await ReadData.read_transactions(player_id, session, limit=limit)
            return DataConverter.convert_transactions(transactions)
