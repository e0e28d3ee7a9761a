"""Player and gang registry.

Creates and finds players and gangs. Lookups by a human-readable identifier
try the case-insensitive name first and fall back to the id.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from gangwars.converter import DataConverter
from gangwars.crud import CreateData, DeleteData, ReadData
from gangwars.domain.gang_rules import Role, generate_gang_id, normalize_name
from gangwars.entity_lock_manager import EntityLockManager, gang_name_key, player_key, player_name_key
from gangwars.errors import NotFoundError, ValidationError
from gangwars.load_secrets import starting_currency as STARTING_CURRENCY
from gangwars.models.schemas import Gang, Player
from gangwars.models.schema_models import GangSchema, PlayerSchema
from gangwars.services.base import BaseService, Clock


class RegistryService(BaseService):
    def __init__(
        self,
        Session: async_sessionmaker,
        locks: Optional[EntityLockManager] = None,
        clock: Optional[Clock] = None,
        starting_currency: int = STARTING_CURRENCY,
    ):
        super().__init__(Session, locks, clock)
        self.starting_currency = starting_currency

    async def register(self, player_id: str, name: str, is_supermod: bool = False) -> PlayerSchema:
        """Register a player. Registering an existing id changes nothing.

        Args:
            player_id (str): Stable external identity (chat user id)
            name (str): Display name, unique case-insensitively
            is_supermod (bool): Granted once, at registration time

        Returns:
            PlayerSchema: The new or already existing player
        """
        name = normalize_name(name)
        if not player_id or not name:
            raise ValidationError("Invalid name")

        try:
            return await self._register(player_id, name, is_supermod)
        finally:
            await self.locks.cleanup(player_name_key(name))

    async def _register(self, player_id: str, name: str, is_supermod: bool) -> PlayerSchema:
        async with self.locks.hold(player_key(player_id), player_name_key(name)):
            async with self.transaction("register player") as session:
                existing = await ReadData.read_player(player_id, session)
                if existing is not None:
                    return DataConverter.convert_player_to_schema(existing)

                same_name = await ReadData.read_player_by_name(name, session)
                if same_name is not None:
                    raise ValidationError("Name already taken")

                player = CreateData.add_player(
                    Player(
                        player_id=player_id,
                        name=name,
                        currency=self.starting_currency,
                        gang_id=None,
                        inventory={},
                        wins=0,
                        is_supermod=bool(is_supermod),
                        role=Role.grunt.value,
                        created_at=self.clock(),
                    ),
                    session,
                )
                try:
                    await session.flush()
                except IntegrityError as e:
                    raise ValidationError("Name already taken") from e
                logging.info(f"Registered player {player_id} ({name})")
                return DataConverter.convert_player_to_schema(player)

    async def get_player(self, player_id: str) -> PlayerSchema:
        async with self.transaction("read player") as session:
            player = await self.require_player(player_id, session, for_update=False, reason="Player not found")
            return DataConverter.convert_player_to_schema(player)

    async def resolve_player(self, identifier: str) -> PlayerSchema:
        """Find a player by name (preferred) or id

        Args:
            identifier (str): "@name", "name" or the player id

        Returns:
            PlayerSchema: The matching player
        """
        identifier = normalize_name(identifier)
        if not identifier:
            raise NotFoundError("Player not found")
        async with self.transaction("resolve player") as session:
            player = await ReadData.read_player_by_name(identifier, session)
            if player is None:
                player = await ReadData.read_player(identifier, session)
            if player is None:
                raise NotFoundError("Player not found")
            return DataConverter.convert_player_to_schema(player)

    async def get_gang(self, gang_id: str) -> GangSchema:
        async with self.transaction("read gang") as session:
            gang = await self.require_gang(gang_id, session, for_update=False)
            members = await ReadData.read_gang_members(gang.gang_id, session)
            return DataConverter.convert_gang_to_schema(gang, members)

    async def resolve_gang(self, identifier: str) -> GangSchema:
        """Find a gang by name (preferred) or id

        Args:
            identifier (str): "@name", "name" or the gang id

        Returns:
            GangSchema: The matching gang with its member ids
        """
        identifier = normalize_name(identifier)
        if not identifier:
            raise NotFoundError("Gang not found")
        async with self.transaction("resolve gang") as session:
            gang = await ReadData.read_gang_by_name(identifier, session)
            if gang is None:
                gang = await ReadData.read_gang(identifier, session)
            if gang is None:
                raise NotFoundError("Gang not found")
            members = await ReadData.read_gang_members(gang.gang_id, session)
            return DataConverter.convert_gang_to_schema(gang, members)

    async def list_gang_members(self, gang_id: str) -> List[PlayerSchema]:
        async with self.transaction("list gang members") as session:
            await self.require_gang(gang_id, session, for_update=False)
            members = await ReadData.read_gang_members(gang_id, session)
            return [DataConverter.convert_player_to_schema(member) for member in members]

    async def create_gang(self, player_id: str, gang_name: str) -> GangSchema:
        """Create a gang with the creator as its only member and God Father

        Args:
            player_id (str): The creator
            gang_name (str): Display name; may contain spaces

        Returns:
            GangSchema: The created gang
        """
        gang_name = " ".join((gang_name or "").split())
        if not gang_name:
            raise ValidationError("Invalid gang name")

        try:
            return await self._create_gang(player_id, gang_name)
        finally:
            await self.locks.cleanup(gang_name_key(gang_name))

    async def _create_gang(self, player_id: str, gang_name: str) -> GangSchema:
        async with self.locks.hold(player_key(player_id), gang_name_key(gang_name)):
            async with self.transaction("create gang") as session:
                player = await self.require_player(player_id, session)
                if player.gang_id:
                    raise ValidationError("Already in a gang")
                if await ReadData.read_gang_by_name(gang_name, session) is not None:
                    raise ValidationError("Gang name taken")

                await DeleteData.delete_join_requests_for_player(player_id, session)
                now = self.clock()
                gang = CreateData.add_gang(
                    Gang(
                        gang_id=generate_gang_id(gang_name, now),
                        name=gang_name,
                        bank=0,
                        wins=0,
                        disband_votes=[],
                        created_at=now,
                    ),
                    session,
                )
                player.gang_id = gang.gang_id
                player.role = Role.god_father.value
                try:
                    await session.flush()
                except IntegrityError as e:
                    raise ValidationError("Gang name taken") from e

                logging.info(f"Player {player_id} created gang {gang.gang_id}")
                return DataConverter.convert_gang_to_schema(gang, [player])
