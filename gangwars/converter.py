from typing import Iterable, List

from gangwars.domain.gang_rules import parse_role
from gangwars.domain.inventory import decode_inventory
from gangwars.models.schemas import Gang, JoinRequest, Player, Transaction
from gangwars.models.schema_models import (
    GangSchema,
    JoinRequestSchema,
    PlayerSchema,
    TransactionSchema,
)


class DataConverter:
    """This class is used to convert rows into the schemas handed to callers."""

    @staticmethod
    def convert_player_to_schema(player: Player) -> PlayerSchema:
        """Convert a Player row to PlayerSchema

        The inventory is always returned in the canonical weapon id -> level shape,
        whatever encoding is stored.

        Args:
            player (Player): Player row

        Returns:
            PlayerSchema: Player data for the caller
        """
        return PlayerSchema(
            player_id=player.player_id,
            name=player.name,
            currency=player.currency,
            gang_id=player.gang_id,
            inventory=decode_inventory(player.inventory).levels,
            wins=player.wins,
            is_supermod=bool(player.is_supermod),
            role=parse_role(player.role),
            last_attacked_at=player.last_attacked_at,
            last_attack_at=player.last_attack_at,
            created_at=player.created_at,
        )

    @staticmethod
    def convert_gang_to_schema(gang: Gang, members: Iterable[Player]) -> GangSchema:
        """Convert a Gang row and its member rows to GangSchema

        Args:
            gang (Gang): Gang row
            members (Iterable[Player]): Players whose gang_id is this gang

        Returns:
            GangSchema: Gang data with member ids
        """
        return GangSchema(
            gang_id=gang.gang_id,
            name=gang.name,
            members=[member.player_id for member in members],
            bank=gang.bank,
            wins=gang.wins,
            disband_votes=list(gang.disband_votes or []),
            last_attacked_at=gang.last_attacked_at,
            last_attack_at=gang.last_attack_at,
            created_at=gang.created_at,
        )

    @staticmethod
    def convert_join_requests(join_requests: Iterable[JoinRequest]) -> List[JoinRequestSchema]:
        return [JoinRequestSchema.model_validate(item) for item in join_requests]

    @staticmethod
    def convert_transactions(transactions: Iterable[Transaction]) -> List[TransactionSchema]:
        return [TransactionSchema.model_validate(item) for item in transactions]
