"""Weapon shop: buying and upgrading weapons.

Inventories still stored in the legacy list shape are rewritten to the
weapon id -> level mapping before anything else happens. The rewrite is
committed on its own, so it sticks even when the purchase itself is rejected.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from gangwars.crud import CreateData
from gangwars.domain.inventory import decode_inventory, with_level
from gangwars.domain.weapons import WEAPON_CATALOG, Weapon, WeaponCatalog
from gangwars.entity_lock_manager import EntityLockManager, player_key
from gangwars.errors import InsufficientFundsError, NotFoundError, ValidationError
from gangwars.models.dc_models import PurchaseResultModel, TransactionKindModel
from gangwars.services.base import BaseService, Clock


class ShopService(BaseService):
    def __init__(
        self,
        Session: async_sessionmaker,
        locks: Optional[EntityLockManager] = None,
        clock: Optional[Clock] = None,
        catalog: WeaponCatalog = WEAPON_CATALOG,
    ):
        super().__init__(Session, locks, clock)
        self.catalog = catalog

    def list_weapons(self) -> List[Weapon]:
        return list(self.catalog.all())

    def get_weapon(self, weapon_id: str) -> Weapon:
        weapon = self.catalog.get(weapon_id)
        if weapon is None:
            raise NotFoundError("Weapon not found")
        return weapon

    async def migrate_inventory(self, player_id: str) -> bool:
        """Persist a legacy list inventory in the mapping shape

        Must be called with the player's lock held.

        Returns:
            bool: True if the stored inventory was rewritten
        """
        async with self.transaction("migrate inventory") as session:
            player = await self.require_player(player_id, session)
            decoded = decode_inventory(player.inventory)
            if not decoded.is_legacy:
                return False
            player.inventory = dict(decoded.levels)
            logging.info(f"Migrated legacy inventory of player {player_id}")
            return True

    async def buy(self, player_id: str, weapon_id: str) -> PurchaseResultModel:
        """Buy a weapon at level 1

        Args:
            player_id (str): The buyer
            weapon_id (str): Catalog id or display name

        Returns:
            PurchaseResultModel: The weapon, its level and the remaining currency
        """
        async with self.locks.hold(player_key(player_id)):
            await self.migrate_inventory(player_id)

            async with self.transaction("buy weapon") as session:
                player = await self.require_player(player_id, session)
                weapon = self.get_weapon(weapon_id)
                levels = decode_inventory(player.inventory).levels
                if weapon.weapon_id in levels:
                    raise ValidationError("Already owned")
                if player.currency < weapon.cost:
                    raise InsufficientFundsError("Insufficient funds")

                player.currency -= weapon.cost
                player.inventory = with_level(levels, weapon.weapon_id, 1)
                CreateData.add_transaction(
                    session,
                    kind=TransactionKindModel.spend.value,
                    amount=weapon.cost,
                    created_at=self.clock(),
                    player_id=player_id,
                    note=f"buy {weapon.weapon_id}",
                )

                logging.info(f"Player {player_id} bought {weapon.weapon_id} for {weapon.cost}")
                return PurchaseResultModel(
                    player_id=player_id,
                    weapon_id=weapon.weapon_id,
                    level=1,
                    cost=weapon.cost,
                    currency=player.currency,
                )

    async def upgrade(self, player_id: str, weapon_id: str) -> PurchaseResultModel:
        """Raise an owned weapon by exactly one level

        Args:
            player_id (str): The owner
            weapon_id (str): Catalog id or display name

        Returns:
            PurchaseResultModel: The weapon, its new level and the remaining currency
        """
        async with self.locks.hold(player_key(player_id)):
            await self.migrate_inventory(player_id)

            async with self.transaction("upgrade weapon") as session:
                player = await self.require_player(player_id, session)
                weapon = self.get_weapon(weapon_id)
                levels = decode_inventory(player.inventory).levels
                level = levels.get(weapon.weapon_id)
                if level is None:
                    raise ValidationError("Weapon not owned")
                if level >= weapon.max_level:
                    raise ValidationError("Max level reached")
                if player.currency < weapon.upgrade_cost:
                    raise InsufficientFundsError("Insufficient funds")

                player.currency -= weapon.upgrade_cost
                player.inventory = with_level(levels, weapon.weapon_id, level + 1)
                CreateData.add_transaction(
                    session,
                    kind=TransactionKindModel.spend.value,
                    amount=weapon.upgrade_cost,
                    created_at=self.clock(),
                    player_id=player_id,
                    note=f"upgrade {weapon.weapon_id} to {level + 1}",
                )

                logging.info(f"Player {player_id} upgraded {weapon.weapon_id} to level {level + 1}")
                return PurchaseResultModel(
                    player_id=player_id,
                    weapon_id=weapon.weapon_id,
                    level=level + 1,
                    cost=weapon.upgrade_cost,
                    currency=player.currency,
                )
