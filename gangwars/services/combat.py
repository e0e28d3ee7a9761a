"""Combat resolution between players and between gangs.

Both sides' balances, win counters and cooldown timestamps are written in a
single transaction while both entities are locked (in sorted key order, so
two gangs attacking each other at once cannot deadlock).
"""

import logging
from typing import Callable, Optional

import numpy as np
from sqlalchemy.ext.asyncio import async_sessionmaker

from gangwars.crud import CreateData, ReadData
from gangwars.domain.combat_rules import (
    GANG_JITTER_MAX,
    PLAYER_JITTER_MAX,
    base_power,
    gang_base_power,
    is_on_cooldown,
    resolve_battle,
)
from gangwars.domain.inventory import decode_inventory
from gangwars.domain.weapons import WEAPON_CATALOG, WeaponCatalog
from gangwars.entity_lock_manager import EntityLockManager, gang_key, player_key
from gangwars.errors import CooldownError, ValidationError
from gangwars.models.dc_models import AttackResultModel, TransactionKindModel
from gangwars.services.base import BaseService, Clock

Jitter = Callable[[float], float]


class NumpyJitter:
    """Draws uniform jitter in [0, high) from a numpy Generator."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def __call__(self, high: float) -> float:
        return float(self.rng.uniform(0.0, high))


class CombatService(BaseService):
    def __init__(
        self,
        Session: async_sessionmaker,
        locks: Optional[EntityLockManager] = None,
        clock: Optional[Clock] = None,
        catalog: WeaponCatalog = WEAPON_CATALOG,
        jitter: Optional[Jitter] = None,
    ):
        super().__init__(Session, locks, clock)
        self.catalog = catalog
        self.jitter: Jitter = jitter or NumpyJitter()

    async def attack_player(self, attacker_id: str, target_id: str) -> AttackResultModel:
        """Resolve a player-vs-player attack

        Args:
            attacker_id (str): The attacking player
            target_id (str): The attacked player

        Returns:
            AttackResultModel: Winner, loser, spoils and both powers
        """
        if attacker_id == target_id:
            raise ValidationError("Cannot attack yourself")

        async with self.locks.hold(player_key(attacker_id), player_key(target_id)):
            async with self.transaction("attack player") as session:
                attacker = await self.require_player(attacker_id, session)
                target = await self.require_player(target_id, session, reason="Player not found")

                now = self.clock()
                if is_on_cooldown(target.last_attacked_at, target.last_attack_at, now):
                    raise CooldownError("Target is on cooldown")

                outcome = resolve_battle(
                    base_power(decode_inventory(attacker.inventory).levels, self.catalog),
                    base_power(decode_inventory(target.inventory).levels, self.catalog),
                    self.jitter(PLAYER_JITTER_MAX),
                    self.jitter(PLAYER_JITTER_MAX),
                    attacker.currency,
                    target.currency,
                )

                attacker.last_attack_at = now
                target.last_attacked_at = now

                winner_id = loser_id = None
                if not outcome.draw:
                    winner, loser = (attacker, target) if outcome.attacker_won else (target, attacker)
                    winner_id, loser_id = winner.player_id, loser.player_id
                    loser.currency -= outcome.spoils
                    winner.currency += outcome.spoils
                    winner.wins += 1
                    if outcome.spoils:
                        CreateData.add_transaction(
                            session,
                            kind=TransactionKindModel.earn.value,
                            amount=outcome.spoils,
                            created_at=now,
                            player_id=winner_id,
                            note=f"won against {loser_id}",
                        )
                        CreateData.add_transaction(
                            session,
                            kind=TransactionKindModel.spend.value,
                            amount=outcome.spoils,
                            created_at=now,
                            player_id=loser_id,
                            note=f"lost against {winner_id}",
                        )

                logging.info(
                    f"Player {attacker_id} attacked {target_id}: "
                    f"{outcome.attacker_power:.2f} vs {outcome.target_power:.2f}, "
                    f"winner={winner_id}, spoils={outcome.spoils}"
                )
                return AttackResultModel(
                    attacker_id=attacker_id,
                    target_id=target_id,
                    winner_id=winner_id,
                    loser_id=loser_id,
                    amount=outcome.spoils,
                    draw=outcome.draw,
                    attacker_power=outcome.attacker_power,
                    target_power=outcome.target_power,
                )

    async def attack_gang(self, attacker_gang_id: str, target_gang_id: str) -> AttackResultModel:
        """Resolve a gang-vs-gang attack; power is summed over all members

        Args:
            attacker_gang_id (str): The attacking gang
            target_gang_id (str): The attacked gang

        Returns:
            AttackResultModel: Winner, loser, spoils (taken from the bank) and both powers
        """
        if attacker_gang_id == target_gang_id:
            raise ValidationError("Cannot attack yourself")

        async with self.locks.hold(gang_key(attacker_gang_id), gang_key(target_gang_id)):
            async with self.transaction("attack gang") as session:
                attacker = await self.require_gang(attacker_gang_id, session)
                target = await self.require_gang(target_gang_id, session)

                now = self.clock()
                if is_on_cooldown(target.last_attacked_at, target.last_attack_at, now):
                    raise CooldownError("Target is on cooldown")

                attacker_members = await ReadData.read_gang_members(attacker_gang_id, session)
                target_members = await ReadData.read_gang_members(target_gang_id, session)
                outcome = resolve_battle(
                    gang_base_power(
                        (decode_inventory(member.inventory).levels for member in attacker_members),
                        self.catalog,
                    ),
                    gang_base_power(
                        (decode_inventory(member.inventory).levels for member in target_members),
                        self.catalog,
                    ),
                    self.jitter(GANG_JITTER_MAX),
                    self.jitter(GANG_JITTER_MAX),
                    attacker.bank,
                    target.bank,
                )

                attacker.last_attack_at = now
                target.last_attacked_at = now

                winner_id = loser_id = None
                if not outcome.draw:
                    winner, loser = (attacker, target) if outcome.attacker_won else (target, attacker)
                    winner_id, loser_id = winner.gang_id, loser.gang_id
                    loser.bank -= outcome.spoils
                    winner.bank += outcome.spoils
                    winner.wins += 1
                    if outcome.spoils:
                        CreateData.add_transaction(
                            session,
                            kind=TransactionKindModel.earn.value,
                            amount=outcome.spoils,
                            created_at=now,
                            gang_id=winner_id,
                            note=f"won against {loser_id}",
                        )
                        CreateData.add_transaction(
                            session,
                            kind=TransactionKindModel.spend.value,
                            amount=outcome.spoils,
                            created_at=now,
                            gang_id=loser_id,
                            note=f"lost against {winner_id}",
                        )

                logging.info(
                    f"Gang {attacker_gang_id} attacked {target_gang_id}: "
                    f"{outcome.attacker_power:.2f} vs {outcome.target_power:.2f}, "
                    f"winner={winner_id}, spoils={outcome.spoils}"
                )
                return AttackResultModel(
                    attacker_id=attacker_gang_id,
                    target_id=target_gang_id,
                    winner_id=winner_id,
                    loser_id=loser_id,
                    amount=outcome.spoils,
                    draw=outcome.draw,
                    attacker_power=outcome.attacker_power,
                    target_power=outcome.target_power,
                )
