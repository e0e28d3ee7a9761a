from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime

from gangwars.domain.gang_rules import Role


class PlayerSchema(BaseModel):
    player_id: str
    name: str
    currency: int
    gang_id: Optional[str] = None
    inventory: Dict[str, int] = Field(default_factory=dict)
    wins: int = 0
    is_supermod: bool = False
    role: Role = Role.grunt
    last_attacked_at: Optional[datetime] = None
    last_attack_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GangSchema(BaseModel):
    gang_id: str
    name: str
    members: List[str] = Field(default_factory=list)
    bank: int = 0
    wins: int = 0
    disband_votes: List[str] = Field(default_factory=list)
    last_attacked_at: Optional[datetime] = None
    last_attack_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JoinRequestSchema(BaseModel):
    request_id: UUID
    player_id: str
    gang_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionSchema(BaseModel):
    transaction_id: UUID
    player_id: Optional[str] = None
    gang_id: Optional[str] = None
    kind: str
    amount: int
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
