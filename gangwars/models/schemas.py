from sqlalchemy import Index, func
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import JSON, Boolean, DateTime, Integer, String, Uuid
from uuid6 import uuid7
from datetime import datetime


class Base(DeclarativeBase):
    pass


class Player(Base):
    __tablename__ = "gw_players"
    player_id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    currency = Column(Integer, nullable=False, default=0)
    gang_id = Column(String, nullable=True, index=True)
    # Either a list of weapon ids (legacy) or a dict of weapon id -> level.
    inventory = Column(JSON, nullable=False, default=dict)
    wins = Column(Integer, nullable=False, default=0)
    is_supermod = Column(Boolean, nullable=False, default=False)
    role = Column(String, nullable=False, default="Grunt")
    last_attacked_at = Column(DateTime, nullable=True)
    last_attack_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


# Names are unique case-insensitively.
Index("ux_gw_players_name_lower", func.lower(Player.name), unique=True)


class Gang(Base):
    __tablename__ = "gw_gangs"
    gang_id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    bank = Column(Integer, nullable=False, default=0)
    wins = Column(Integer, nullable=False, default=0)
    disband_votes = Column(JSON, nullable=False, default=list)
    last_attacked_at = Column(DateTime, nullable=True)
    last_attack_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


Index("ux_gw_gangs_name_lower", func.lower(Gang.name), unique=True)


class JoinRequest(Base):
    __tablename__ = "gw_join_requests"
    request_id = Column(Uuid, primary_key=True, default=uuid7)
    player_id = Column(String, nullable=False, index=True)
    gang_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now)


class Transaction(Base):
    __tablename__ = "gw_transactions"
    transaction_id = Column(Uuid, primary_key=True, default=uuid7)
    player_id = Column(String, nullable=True, index=True)
    gang_id = Column(String, nullable=True, index=True)
    kind = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    note = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
