from pydantic import BaseModel
from enum import Enum
from typing import Optional

from gangwars.domain.gang_rules import Role


class TransactionKindModel(str, Enum):
    earn = "earn"
    spend = "spend"
    deposit = "deposit"
    withdraw = "withdraw"
    admin = "admin"


# ==== Request bodies ==========================================================


class RegisterModel(BaseModel):
    player_id: str
    name: str
    is_supermod: bool = False


class CreateGangModel(BaseModel):
    player_id: str
    gang_name: str


class PlayerRefModel(BaseModel):
    player_id: str


class ApproverModel(BaseModel):
    approver_id: str


class AmountModel(BaseModel):
    amount: int


class RoleChangeModel(BaseModel):
    granter_id: str
    role: Role


class RequesterModel(BaseModel):
    """Identifies who issued a destructive command."""
    requester_id: str


class GrantModel(BaseModel):
    requester_id: str
    amount: int


class PassiveIncomeModel(BaseModel):
    requester_id: str
    amount: Optional[int] = None


# ==== Results =================================================================


class AttackResultModel(BaseModel):
    attacker_id: str
    target_id: str
    winner_id: Optional[str]
    loser_id: Optional[str]
    amount: int
    draw: bool
    attacker_power: float
    target_power: float


class DepositResultModel(BaseModel):
    player_id: str
    gang_id: str
    amount: int
    player_currency: int
    gang_bank: int


class WithdrawResultModel(BaseModel):
    player_id: str
    gang_id: str
    amount: int
    player_currency: int
    gang_bank: int


class PurchaseResultModel(BaseModel):
    player_id: str
    weapon_id: str
    level: int
    cost: int
    currency: int


class LeaveResultModel(BaseModel):
    player_id: str
    gang_id: str
    gang_deleted: bool


class DisbandVoteResultModel(BaseModel):
    gang_id: str
    votes: int
    members: int


class PassiveIncomeResultModel(BaseModel):
    players: int
    amount: int


class MessageModel(BaseModel):
    message: str
