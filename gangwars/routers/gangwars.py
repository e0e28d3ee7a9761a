"""HTTP surface for the chat-command dispatcher.

The dispatcher resolves names to records, calls one engine verb and turns
the result into a chat message. This router plays that role over HTTP:

- resolves human-readable targets ("@name", name or id) through the registry
- gates destructive verbs (admin, disband, gang attack) by the caller's identity
- announces outcomes on the notification channel in the background
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel

from gangwars import load_secrets
from gangwars.domain.weapons import Weapon
from gangwars.engine import GangWarsEngine
from gangwars.errors import PermissionDeniedError
from gangwars.models.dc_models import (
    AmountModel,
    ApproverModel,
    AttackResultModel,
    CreateGangModel,
    DepositResultModel,
    DisbandVoteResultModel,
    GrantModel,
    LeaveResultModel,
    MessageModel,
    PassiveIncomeModel,
    PassiveIncomeResultModel,
    PlayerRefModel,
    PurchaseResultModel,
    RegisterModel,
    RequesterModel,
    RoleChangeModel,
    WithdrawResultModel,
)
from gangwars.models.schema_models import (
    GangSchema,
    JoinRequestSchema,
    PlayerSchema,
    TransactionSchema,
)

gangwars_router = APIRouter(prefix="/gangwars")

_engine: GangWarsEngine | None = None
_announcer = None


class GameSettingsModel(BaseModel):
    currency_name: str
    game_enabled: bool
    passive_income_amount: int


def get_settings() -> GameSettingsModel:
    return GameSettingsModel(
        currency_name=load_secrets.currency_name,
        game_enabled=load_secrets.game_enabled,
        passive_income_amount=load_secrets.passive_income_amount,
    )


def get_engine() -> GangWarsEngine:
    global _engine
    if _engine is None:
        from gangwars.db import Session

        _engine = GangWarsEngine(Session)
    return _engine


def get_announcer():
    global _announcer
    if _announcer is None:
        from redis.asyncio import Redis

        from gangwars.announcer import RedisAnnouncer

        redis = Redis(
            host=load_secrets.redis_host,
            port=load_secrets.redis_port,
            decode_responses=True,
            health_check_interval=30,
        )
        _announcer = RedisAnnouncer(redis)
    return _announcer


async def close_announcer() -> None:
    global _announcer
    if _announcer is not None:
        await _announcer.redis.aclose()
        _announcer = None


def require_game_enabled(settings: GameSettingsModel = Depends(get_settings)) -> GameSettingsModel:
    if not settings.game_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gang Wars is disabled",
        )
    return settings


async def require_supermod(engine: GangWarsEngine, requester_id: str) -> PlayerSchema:
    """Capability check for admin verbs: the caller must be a super moderator"""
    requester = await engine.get_player(requester_id)
    if not requester.is_supermod:
        logging.warning(f"Player {requester_id} tried an admin command")
        raise PermissionDeniedError("Super moderator only")
    return requester


async def require_member(engine: GangWarsEngine, requester_id: str, gang_id: str) -> PlayerSchema:
    requester = await engine.get_player(requester_id)
    if requester.gang_id != gang_id:
        raise PermissionDeniedError("Not a member of this gang")
    return requester


def describe_attack(attacker_name: str, target_name: str, result: AttackResultModel, currency_name: str) -> str:
    if result.draw:
        return f"{attacker_name} attacked {target_name} and it was a draw!"
    if result.winner_id == result.attacker_id:
        return f"{attacker_name} beat {target_name} and took {result.amount} {currency_name}!"
    return f"{target_name} fought off {attacker_name} and took {result.amount} {currency_name}!"


class ShopAPI:
    @staticmethod
    @gangwars_router.get("/weapons", response_model=List[Weapon])
    async def list_weapons(engine: GangWarsEngine = Depends(get_engine)):
        return engine.list_weapons()

    @staticmethod
    @gangwars_router.post(
        "/players/{player_id}/weapons/{weapon_id}/buy",
        response_model=PurchaseResultModel,
    )
    async def buy(
        player_id: str,
        weapon_id: str,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        result = await engine.buy(player_id, weapon_id)
        player = await engine.get_player(player_id)
        background_tasks.add_task(
            announcer.announce,
            f"{player.name} bought a {result.weapon_id} for {result.cost} {settings.currency_name}.",
        )
        return result

    @staticmethod
    @gangwars_router.post(
        "/players/{player_id}/weapons/{weapon_id}/upgrade",
        response_model=PurchaseResultModel,
    )
    async def upgrade(
        player_id: str,
        weapon_id: str,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        result = await engine.upgrade(player_id, weapon_id)
        player = await engine.get_player(player_id)
        background_tasks.add_task(
            announcer.announce,
            f"{player.name} upgraded their {result.weapon_id} to level {result.level}.",
        )
        return result


class PlayerAPI:
    @staticmethod
    @gangwars_router.post("/players", response_model=PlayerSchema)
    async def register(
        body: RegisterModel,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        return await engine.register(body.player_id, body.name, body.is_supermod)

    @staticmethod
    @gangwars_router.get("/players/{identifier}", response_model=PlayerSchema)
    async def get_player(identifier: str, engine: GangWarsEngine = Depends(get_engine)):
        return await engine.resolve_player(identifier)

    @staticmethod
    @gangwars_router.get("/players/{player_id}/transactions", response_model=List[TransactionSchema])
    async def list_transactions(player_id: str, limit: int = 20, engine: GangWarsEngine = Depends(get_engine)):
        return await engine.list_transactions(player_id, limit)

    @staticmethod
    @gangwars_router.post("/players/{player_id}/deposit", response_model=DepositResultModel)
    async def deposit(
        player_id: str,
        body: AmountModel,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        result = await engine.deposit(player_id, body.amount)
        player = await engine.get_player(player_id)
        background_tasks.add_task(
            announcer.announce,
            f"{player.name} deposited {result.amount} {settings.currency_name} into the gang bank.",
        )
        return result

    @staticmethod
    @gangwars_router.post("/players/{player_id}/withdraw", response_model=WithdrawResultModel)
    async def withdraw(
        player_id: str,
        body: AmountModel,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        return await engine.withdraw(player_id, body.amount)

    @staticmethod
    @gangwars_router.post("/players/{player_id}/attack/{target}", response_model=AttackResultModel)
    async def attack_player(
        player_id: str,
        target: str,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        attacker = await engine.get_player(player_id)
        defender = await engine.resolve_player(target)
        result = await engine.attack_player(attacker.player_id, defender.player_id)
        background_tasks.add_task(
            announcer.announce,
            describe_attack(attacker.name, defender.name, result, settings.currency_name),
        )
        return result


class GangAPI:
    @staticmethod
    @gangwars_router.post("/gangs", response_model=GangSchema)
    async def create_gang(
        body: CreateGangModel,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        gang = await engine.create_gang(body.player_id, body.gang_name)
        background_tasks.add_task(announcer.announce, f"A new gang has formed: {gang.name}!")
        return gang

    @staticmethod
    @gangwars_router.get("/gangs/{identifier}", response_model=GangSchema)
    async def get_gang(identifier: str, engine: GangWarsEngine = Depends(get_engine)):
        return await engine.resolve_gang(identifier)

    @staticmethod
    @gangwars_router.get("/gangs/{gang_id}/members", response_model=List[PlayerSchema])
    async def list_gang_members(gang_id: str, engine: GangWarsEngine = Depends(get_engine)):
        return await engine.list_gang_members(gang_id)

    @staticmethod
    @gangwars_router.get("/gangs/{gang_id}/join-requests", response_model=List[JoinRequestSchema])
    async def list_join_requests(gang_id: str, engine: GangWarsEngine = Depends(get_engine)):
        return await engine.list_join_requests(gang_id)

    @staticmethod
    @gangwars_router.post("/gangs/{identifier}/join-requests", response_model=JoinRequestSchema)
    async def request_join(
        identifier: str,
        body: PlayerRefModel,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        gang = await engine.resolve_gang(identifier)
        return await engine.request_join(body.player_id, gang.gang_id)

    @staticmethod
    @gangwars_router.post("/join-requests/{request_id}/approve", response_model=PlayerSchema)
    async def approve_join(
        request_id: UUID,
        body: ApproverModel,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        player = await engine.approve_join(request_id, body.approver_id)
        gang = await engine.get_gang(player.gang_id)
        background_tasks.add_task(announcer.announce, f"{player.name} joined {gang.name}.")
        return player

    @staticmethod
    @gangwars_router.post("/join-requests/{request_id}/reject", response_model=JoinRequestSchema)
    async def reject_join(
        request_id: UUID,
        body: ApproverModel,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        return await engine.reject_join(request_id, body.approver_id)

    @staticmethod
    @gangwars_router.post("/players/{player_id}/leave", response_model=LeaveResultModel)
    async def leave(
        player_id: str,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        return await engine.leave(player_id)

    @staticmethod
    @gangwars_router.post("/players/{player_id}/disband-vote", response_model=DisbandVoteResultModel)
    async def vote_disband(
        player_id: str,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        return await engine.vote_disband(player_id)

    @staticmethod
    @gangwars_router.post("/players/{player_id}/role", response_model=PlayerSchema)
    async def set_role(
        player_id: str,
        body: RoleChangeModel,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        return await engine.set_role(body.granter_id, player_id, body.role)

    @staticmethod
    @gangwars_router.post("/gangs/{gang_id}/disband", response_model=List[str])
    async def disband(
        gang_id: str,
        body: RequesterModel,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        await require_member(engine, body.requester_id, gang_id)
        gang = await engine.get_gang(gang_id)
        released = await engine.disband(gang_id)
        background_tasks.add_task(announcer.announce, f"{gang.name} has been disbanded.")
        return released

    @staticmethod
    @gangwars_router.post("/gangs/{gang_id}/attack/{target}", response_model=AttackResultModel)
    async def attack_gang(
        gang_id: str,
        target: str,
        body: RequesterModel,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(require_game_enabled),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        await require_member(engine, body.requester_id, gang_id)
        attacker = await engine.get_gang(gang_id)
        defender = await engine.resolve_gang(target)
        result = await engine.attack_gang(attacker.gang_id, defender.gang_id)
        background_tasks.add_task(
            announcer.announce,
            describe_attack(attacker.name, defender.name, result, settings.currency_name),
        )
        return result


class AdminAPI:
    @staticmethod
    @gangwars_router.post("/admin/reset", response_model=MessageModel)
    async def reset(body: RequesterModel, engine: GangWarsEngine = Depends(get_engine)):
        await require_supermod(engine, body.requester_id)
        await engine.reset()
        return MessageModel(message="Gang Wars has been reset")

    @staticmethod
    @gangwars_router.post("/admin/grant/{target}", response_model=PlayerSchema)
    async def grant_currency(
        target: str,
        body: GrantModel,
        background_tasks: BackgroundTasks,
        settings: GameSettingsModel = Depends(get_settings),
        engine: GangWarsEngine = Depends(get_engine),
        announcer=Depends(get_announcer),
    ):
        await require_supermod(engine, body.requester_id)
        player = await engine.resolve_player(target)
        player = await engine.grant_currency(player.player_id, body.amount)
        background_tasks.add_task(
            announcer.announce,
            f"{player.name} received {body.amount} {settings.currency_name}.",
        )
        return player

    @staticmethod
    @gangwars_router.post("/admin/passive-income", response_model=PassiveIncomeResultModel)
    async def distribute_passive_income(
        body: PassiveIncomeModel,
        settings: GameSettingsModel = Depends(get_settings),
        engine: GangWarsEngine = Depends(get_engine),
    ):
        await require_supermod(engine, body.requester_id)
        amount = body.amount if body.amount is not None else settings.passive_income_amount
        return await engine.distribute_passive_income(amount)

    @staticmethod
    @gangwars_router.post("/admin/players/{target}/remove", response_model=PlayerSchema)
    async def remove_player(
        target: str,
        body: RequesterModel,
        engine: GangWarsEngine = Depends(get_engine),
    ):
        await require_supermod(engine, body.requester_id)
        player = await engine.resolve_player(target)
        return await engine.remove_player(player.player_id)
