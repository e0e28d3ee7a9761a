"""Gang Wars engine facade.

One object exposing every verb to the command dispatcher. All services share
the same session factory, entity locks and clock, so a deposit and an attack
on the same player are serialized against each other.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from gangwars.domain.gang_rules import Role
from gangwars.domain.weapons import WEAPON_CATALOG, Weapon, WeaponCatalog
from gangwars.entity_lock_manager import EntityLockManager
from gangwars.load_secrets import max_gang_members as MAX_GANG_MEMBERS
from gangwars.load_secrets import starting_currency as STARTING_CURRENCY
from gangwars.models.dc_models import (
    AttackResultModel,
    DepositResultModel,
    DisbandVoteResultModel,
    LeaveResultModel,
    PassiveIncomeResultModel,
    PurchaseResultModel,
    WithdrawResultModel,
)
from gangwars.models.schema_models import (
    GangSchema,
    JoinRequestSchema,
    PlayerSchema,
    TransactionSchema,
)
from gangwars.services.admin import AdminService
from gangwars.services.base import Clock
from gangwars.services.combat import CombatService, Jitter
from gangwars.services.economy import EconomyService
from gangwars.services.membership import MembershipService
from gangwars.services.registry import RegistryService
from gangwars.services.shop import ShopService


class GangWarsEngine:
    def __init__(
        self,
        Session: async_sessionmaker,
        *,
        catalog: WeaponCatalog = WEAPON_CATALOG,
        clock: Optional[Clock] = None,
        jitter: Optional[Jitter] = None,
        locks: Optional[EntityLockManager] = None,
        starting_currency: int = STARTING_CURRENCY,
        max_gang_members: int = MAX_GANG_MEMBERS,
    ):
        self.locks = locks or EntityLockManager()
        self.catalog = catalog
        self.registry = RegistryService(Session, self.locks, clock, starting_currency=starting_currency)
        self.membership = MembershipService(Session, self.locks, clock, max_gang_members=max_gang_members)
        self.economy = EconomyService(Session, self.locks, clock)
        self.shop = ShopService(Session, self.locks, clock, catalog=catalog)
        self.combat = CombatService(Session, self.locks, clock, catalog=catalog, jitter=jitter)
        self.admin = AdminService(Session, self.locks, clock)

    # ==== Registry ============================================================

    async def register(self, player_id: str, name: str, is_supermod: bool = False) -> PlayerSchema:
        return await self.registry.register(player_id, name, is_supermod)

    async def get_player(self, player_id: str) -> PlayerSchema:
        return await self.registry.get_player(player_id)

    async def resolve_player(self, identifier: str) -> PlayerSchema:
        return await self.registry.resolve_player(identifier)

    async def get_gang(self, gang_id: str) -> GangSchema:
        return await self.registry.get_gang(gang_id)

    async def resolve_gang(self, identifier: str) -> GangSchema:
        return await self.registry.resolve_gang(identifier)

    async def create_gang(self, player_id: str, gang_name: str) -> GangSchema:
        return await self.registry.create_gang(player_id, gang_name)

    async def list_gang_members(self, gang_id: str) -> List[PlayerSchema]:
        return await self.registry.list_gang_members(gang_id)

    # ==== Join requests and membership =======================================

    async def request_join(self, player_id: str, gang_id: str) -> JoinRequestSchema:
        return await self.membership.request_join(player_id, gang_id)

    async def approve_join(self, request_id: UUID, approver_id: str) -> PlayerSchema:
        return await self.membership.approve_join(request_id, approver_id)

    async def reject_join(self, request_id: UUID, approver_id: str) -> JoinRequestSchema:
        return await self.membership.reject_join(request_id, approver_id)

    async def list_join_requests(self, gang_id: str) -> List[JoinRequestSchema]:
        return await self.membership.list_join_requests(gang_id)

    async def leave(self, player_id: str) -> LeaveResultModel:
        return await self.membership.leave(player_id)

    async def disband(self, gang_id: str) -> List[str]:
        return await self.membership.disband(gang_id)

    async def vote_disband(self, player_id: str) -> DisbandVoteResultModel:
        return await self.membership.vote_disband(player_id)

    async def set_role(self, granter_id: str, target_id: str, role: Role) -> PlayerSchema:
        return await self.membership.set_role(granter_id, target_id, role)

    # ==== Economy =============================================================

    async def deposit(self, player_id: str, amount: int) -> DepositResultModel:
        return await self.economy.deposit(player_id, amount)

    async def withdraw(self, player_id: str, amount: int) -> WithdrawResultModel:
        return await self.economy.withdraw(player_id, amount)

    # ==== Shop ================================================================

    def list_weapons(self) -> List[Weapon]:
        return self.shop.list_weapons()

    async def buy(self, player_id: str, weapon_id: str) -> PurchaseResultModel:
        return await self.shop.buy(player_id, weapon_id)

    async def upgrade(self, player_id: str, weapon_id: str) -> PurchaseResultModel:
        return await self.shop.upgrade(player_id, weapon_id)

    # ==== Combat ==============================================================

    async def attack_player(self, attacker_id: str, target_id: str) -> AttackResultModel:
        return await self.combat.attack_player(attacker_id, target_id)

    async def attack_gang(self, attacker_gang_id: str, target_gang_id: str) -> AttackResultModel:
        return await self.combat.attack_gang(attacker_gang_id, target_gang_id)

    # ==== Admin ===============================================================

    async def reset(self) -> None:
        await self.admin.reset()

    async def grant_currency(self, player_id: str, amount: int) -> PlayerSchema:
        return await self.admin.grant_currency(player_id, amount)

    async def distribute_passive_income(self, amount: int) -> PassiveIncomeResultModel:
        return await self.admin.distribute_passive_income(amount)

    async def remove_player(self, player_id: str) -> PlayerSchema:
        return await self.admin.remove_player(player_id)

    async def list_transactions(self, player_id: str, limit: int = 20) -> List[TransactionSchema]:
        return await self.admin.list_transactions(player_id, limit)
