"""Gang membership: join requests, approval, leaving, disbanding and roles.

Join requests move none -> requested -> (approved | none). Approval and
rejection need a Lieutenant or the God Father of the target gang.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from gangwars.converter import DataConverter
from gangwars.crud import CreateData, DeleteData, ReadData
from gangwars.domain.gang_rules import ASSIGNABLE_ROLES, Role, can_approve_join, parse_role
from gangwars.entity_lock_manager import EntityLockManager, gang_key, player_key
from gangwars.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from gangwars.load_secrets import max_gang_members as MAX_GANG_MEMBERS
from gangwars.models.dc_models import DisbandVoteResultModel, LeaveResultModel
from gangwars.models.schemas import Gang
from gangwars.models.schema_models import JoinRequestSchema, PlayerSchema
from gangwars.services.base import BaseService, Clock


class MembershipService(BaseService):
    def __init__(
        self,
        Session: async_sessionmaker,
        locks: Optional[EntityLockManager] = None,
        clock: Optional[Clock] = None,
        max_gang_members: int = MAX_GANG_MEMBERS,
    ):
        super().__init__(Session, locks, clock)
        self.max_gang_members = max_gang_members

    async def request_join(self, player_id: str, gang_id: str) -> JoinRequestSchema:
        """Record a request by a player to join a gang

        Args:
            player_id (str): The player asking to join
            gang_id (str): The gang to join

        Returns:
            JoinRequestSchema: The pending request
        """
        async with self.locks.hold(player_key(player_id), gang_key(gang_id)):
            async with self.transaction("request join") as session:
                player = await self.require_player(player_id, session)
                gang = await self.require_gang(gang_id, session, for_update=False)
                if player.gang_id:
                    raise ValidationError("Already in a gang")
                if await ReadData.read_join_request_for_pair(player_id, gang.gang_id, session) is not None:
                    raise ValidationError("Join request already pending")
                if await ReadData.count_gang_members(gang.gang_id, session) >= self.max_gang_members:
                    raise ValidationError("Gang is full")

                join_request = CreateData.add_join_request(player_id, gang.gang_id, self.clock(), session)
                await session.flush()
                logging.info(f"Player {player_id} requested to join gang {gang.gang_id}")
                return JoinRequestSchema.model_validate(join_request)

    async def list_join_requests(self, gang_id: str) -> List[JoinRequestSchema]:
        async with self.transaction("list join requests") as session:
            await self.require_gang(gang_id, session, for_update=False)
            join_requests = await ReadData.read_join_requests_for_gang(gang_id, session)
            return DataConverter.convert_join_requests(join_requests)

    async def _peek_join_request(self, request_id: UUID):
        async with self.transaction("read join request") as session:
            join_request = await ReadData.read_join_request(request_id, session)
            if join_request is None:
                raise NotFoundError("Join request not found")
            return join_request.player_id, join_request.gang_id

    async def _require_approver(self, approver_id: str, gang_id: str, session) -> None:
        approver = await self.require_player(approver_id, session, for_update=False)
        if approver.gang_id != gang_id or not can_approve_join(parse_role(approver.role)):
            logging.warning(f"Player {approver_id} tried to handle a join request for {gang_id}")
            raise PermissionDeniedError("Not authorized to approve")

    async def approve_join(self, request_id: UUID, approver_id: str) -> PlayerSchema:
        """Approve a pending join request

        Args:
            request_id (UUID): The request to approve
            approver_id (str): A Lieutenant or the God Father of the target gang

        Returns:
            PlayerSchema: The requester, now a Grunt of the gang
        """
        requester_id, gang_id = await self._peek_join_request(request_id)

        async with self.locks.hold(player_key(requester_id), gang_key(gang_id)):
            async with self.transaction("approve join") as session:
                join_request = await ReadData.read_join_request(request_id, session)
                if join_request is None:
                    raise NotFoundError("Join request not found")
                gang = await self.require_gang(gang_id, session)
                await self._require_approver(approver_id, gang.gang_id, session)

                requester = await self.require_player(requester_id, session)
                if requester.gang_id:
                    raise ValidationError("Already in a gang")
                if await ReadData.count_gang_members(gang.gang_id, session) >= self.max_gang_members:
                    raise ValidationError("Gang is full")

                requester.gang_id = gang.gang_id
                requester.role = Role.grunt.value
                await session.delete(join_request)
                # One gang per player: the other pending requests are moot now.
                await DeleteData.delete_join_requests_for_player(requester_id, session)
                await session.flush()

                logging.info(f"Player {approver_id} approved {requester_id} into gang {gang.gang_id}")
                return DataConverter.convert_player_to_schema(requester)

    async def reject_join(self, request_id: UUID, approver_id: str) -> JoinRequestSchema:
        """Reject a pending join request; the requester is back to no request"""
        requester_id, gang_id = await self._peek_join_request(request_id)

        async with self.locks.hold(player_key(requester_id), gang_key(gang_id)):
            async with self.transaction("reject join") as session:
                join_request = await ReadData.read_join_request(request_id, session)
                if join_request is None:
                    raise NotFoundError("Join request not found")
                await self._require_approver(approver_id, gang_id, session)

                rejected = JoinRequestSchema.model_validate(join_request)
                await session.delete(join_request)
                logging.info(f"Player {approver_id} rejected join request {request_id}")
                return rejected

    async def _delete_gang(self, gang: Gang, session) -> None:
        await DeleteData.delete_join_requests_for_gang(gang.gang_id, session)
        await session.delete(gang)

    async def leave(self, player_id: str) -> LeaveResultModel:
        """Leave the current gang. The gang is deleted when nobody is left.

        Args:
            player_id (str): The leaving player

        Returns:
            LeaveResultModel: The gang left and whether it was deleted
        """
        gang_id = await self.peek_gang_id(player_id)

        async with self.locks.hold(player_key(player_id), gang_key(gang_id)):
            async with self.transaction("leave gang") as session:
                player = await self.require_player(player_id, session)
                if not player.gang_id:
                    raise ValidationError("Not in a gang")
                self.ensure_same_gang(player, gang_id)

                player.gang_id = None
                player.role = Role.grunt.value

                gang = await ReadData.read_gang(gang_id, session, for_update=True)
                gang_deleted = False
                if gang is not None:
                    votes = [voter for voter in (gang.disband_votes or []) if voter != player_id]
                    gang.disband_votes = votes
                    await session.flush()
                    if await ReadData.count_gang_members(gang_id, session) == 0:
                        await self._delete_gang(gang, session)
                        gang_deleted = True

        if gang_deleted:
            await self.locks.cleanup(gang_key(gang_id))
            logging.info(f"Gang {gang_id} was deleted after its last member left")
        logging.info(f"Player {player_id} left gang {gang_id}")
        return LeaveResultModel(player_id=player_id, gang_id=gang_id, gang_deleted=gang_deleted)

    async def disband(self, gang_id: str) -> List[str]:
        """Disband a gang: every member is released and the gang deleted

        No role check happens here; the caller decides who may disband.

        Args:
            gang_id (str): The gang to disband

        Returns:
            List[str]: Ids of the released members
        """
        async with self.locks.hold(gang_key(gang_id)):
            async with self.transaction("disband gang") as session:
                gang = await self.require_gang(gang_id, session)
                members = await ReadData.read_gang_members(gang_id, session, for_update=True)
                released = []
                for member in members:
                    member.gang_id = None
                    member.role = Role.grunt.value
                    released.append(member.player_id)
                await self._delete_gang(gang, session)

        await self.locks.cleanup(gang_key(gang_id))
        logging.info(f"Gang {gang_id} disbanded, released {len(released)} member(s)")
        return released

    async def vote_disband(self, player_id: str) -> DisbandVoteResultModel:
        """Record a member's vote to disband their gang (once per member)"""
        gang_id = await self.peek_gang_id(player_id)

        async with self.locks.hold(player_key(player_id), gang_key(gang_id)):
            async with self.transaction("vote disband") as session:
                player = await self.require_player(player_id, session)
                if not player.gang_id:
                    raise ValidationError("Not in a gang")
                self.ensure_same_gang(player, gang_id)
                gang = await self.require_gang(gang_id, session)

                votes = list(gang.disband_votes or [])
                if player_id in votes:
                    raise ValidationError("Already voted")
                votes.append(player_id)
                gang.disband_votes = votes
                members = await ReadData.count_gang_members(gang_id, session)

                logging.info(f"Player {player_id} voted to disband {gang_id} ({len(votes)}/{members})")
                return DisbandVoteResultModel(gang_id=gang_id, votes=len(votes), members=members)

    async def set_role(self, granter_id: str, target_id: str, role: Role) -> PlayerSchema:
        """Promote or demote a gang member. Only the God Father may do this.

        Args:
            granter_id (str): The God Father of the target's gang
            target_id (str): The member whose role changes
            role (Role): Grunt or Lieutenant

        Returns:
            PlayerSchema: The updated member
        """
        role = parse_role(role)
        if role not in ASSIGNABLE_ROLES:
            raise ValidationError("Invalid role")
        if granter_id == target_id:
            raise ValidationError("Cannot change your own role")

        gang_id = await self.peek_gang_id(target_id)

        async with self.locks.hold(player_key(target_id), gang_key(gang_id)):
            async with self.transaction("set role") as session:
                target = await self.require_player(target_id, session, reason="Player not found")
                if not target.gang_id:
                    raise ValidationError("Not in a gang")
                if target.gang_id != gang_id:
                    raise ConflictError("Gang membership changed, try again")

                granter = await self.require_player(granter_id, session, for_update=False)
                if granter.gang_id != gang_id or parse_role(granter.role) != Role.god_father:
                    raise PermissionDeniedError("Only the God Father can assign roles")

                target.role = role.value
                await session.flush()
                logging.info(f"Player {granter_id} set {target_id} to {role.value}")
                return DataConverter.convert_player_to_schema(target)
